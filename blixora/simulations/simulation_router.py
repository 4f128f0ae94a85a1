import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from blixora.database import serialize_mongo, serialize_many
from blixora.dependencies import UserContext, get_current_user, get_db, require_admin
from blixora.enrollments.database import has_enrollment
from blixora.simulations import database as simulations_db
from blixora.simulations.models import (
    PricingType, SimulationCategory, SimulationCreate, SimulationLevel, SimulationUpdate
)

router = APIRouter(prefix="/simulations", tags=["Simulations"])

# ==================== CATALOGUE ====================

@router.get("")
async def list_simulations(
    category: Optional[SimulationCategory] = None,
    level: Optional[SimulationLevel] = None,
    pricing: Optional[PricingType] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Browse active simulations
    Filters: category, level, pricing type, free-text search
    """
    filters = {
        "category": category.value if category else None,
        "level": level.value if level else None,
        "pricing": pricing.value if pricing else None,
        "search": search
    }
    skip = (page - 1) * limit

    simulations = await simulations_db.list_simulations(db, filters, skip, limit)
    total = await simulations_db.count_simulations(db, filters)

    return {
        "success": True,
        "data": {
            "simulations": serialize_many(simulations),
            "pagination": {
                "current_page": page,
                "total_pages": math.ceil(total / limit),
                "total_items": total,
                "items_per_page": limit
            }
        }
    }


@router.get("/{simulation_id}")
async def get_simulation(simulation_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    simulation = await simulations_db.get_simulation(db, simulation_id)
    if not simulation:
        raise HTTPException(status_code=404, detail="Simulation not found")
    return {"success": True, "data": {"simulation": serialize_mongo(simulation)}}


@router.get("/{simulation_id}/stats")
async def get_simulation_stats(
    simulation_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    """
    Metrics rollup for a simulation
    Only enrolled users (any status) and admins
    """
    simulation = await simulations_db.get_simulation(db, simulation_id, active_only=False)
    if not simulation:
        raise HTTPException(status_code=404, detail="Simulation not found")

    if not user.is_admin and not await has_enrollment(db, user.user_id, simulation_id):
        raise HTTPException(
            status_code=403,
            detail="Access denied. You must be enrolled in this simulation."
        )

    return {
        "success": True,
        "data": {
            "stats": simulation.get("metrics", {}),
            "completion_rate": simulations_db.completion_rate(simulation)
        }
    }

# ==================== ADMIN ====================

@router.post("", status_code=201)
async def create_simulation(
    body: SimulationCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    simulation = await simulations_db.create_simulation(db, body.dict(), admin.user_id)
    return {
        "success": True,
        "message": "Simulation created successfully",
        "data": {"simulation": simulation}
    }


@router.put("/{simulation_id}")
async def update_simulation(
    simulation_id: str,
    body: SimulationUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    updates = body.dict(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    simulation = await simulations_db.update_simulation(db, simulation_id, updates)
    if not simulation:
        raise HTTPException(status_code=404, detail="Simulation not found")

    return {
        "success": True,
        "message": "Simulation updated successfully",
        "data": {"simulation": serialize_mongo(simulation)}
    }


@router.delete("/{simulation_id}")
async def deactivate_simulation(
    simulation_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    """Soft delete; existing enrollments are kept"""
    if not await simulations_db.deactivate_simulation(db, simulation_id):
        raise HTTPException(status_code=404, detail="Simulation not found")
    return {"success": True, "message": "Simulation deactivated"}
