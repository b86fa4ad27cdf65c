# app/routers/strains.py
"""
Strain endpoints. Strains supply the phase templates new plants start from.
"""
from typing import List, Dict
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from app.dependencies import get_db_dependency
from app.models import Plant, Strain
from app.schemas import StrainCreate, StrainRead, PhaseInstance, PhaseTemplate
from app.services.phases import create_plant_phases
from app.utils.dates import utcnow

router = APIRouter(prefix="/api/strains", tags=["strains"])


async def get_strain_or_404(
    strain_id: int,
    session: AsyncSession = Depends(get_db_dependency())
) -> Strain:
    strain = await session.get(Strain, strain_id)
    if not strain:
        raise HTTPException(404, "Strain not found")
    return strain


async def ensure_unique_name(session: AsyncSession, name: str, exclude_id: int = None):
    query = select(Strain).where(Strain.name == name)
    if exclude_id is not None:
        query = query.where(Strain.id != exclude_id)
    result = await session.execute(query)
    if result.scalars().first():
        raise HTTPException(409, f"Strain '{name}' already exists")


@router.get("", response_model=List[StrainRead])
async def list_strains(session: AsyncSession = Depends(get_db_dependency())):
    result = await session.execute(select(Strain).order_by(Strain.name))
    return result.scalars().all()


@router.post("", response_model=StrainRead)
async def create_strain(
    strain_data: StrainCreate,
    session: AsyncSession = Depends(get_db_dependency())
):
    await ensure_unique_name(session, strain_data.name)

    strain = Strain(
        **strain_data.model_dump(exclude={"phase_templates"}),
        phase_templates=[t.model_dump(mode="json") for t in strain_data.phase_templates],
        created_at=utcnow(),
    )
    session.add(strain)
    await session.commit()
    await session.refresh(strain)

    print(f"[STRAINS] Created strain {strain.id} '{strain.name}' ({len(strain.phase_templates)} phase templates)")
    return strain


@router.get("/{strain_id}", response_model=StrainRead)
async def get_strain(strain: Strain = Depends(get_strain_or_404)):
    return strain


@router.put("/{strain_id}", response_model=StrainRead)
async def update_strain(
    strain_data: StrainCreate,
    strain: Strain = Depends(get_strain_or_404),
    session: AsyncSession = Depends(get_db_dependency())
):
    """Replace a strain's fields. Existing plants keep their own phase copies."""
    await ensure_unique_name(session, strain_data.name, exclude_id=strain.id)

    for field, value in strain_data.model_dump(exclude={"phase_templates"}).items():
        setattr(strain, field, value)
    strain.phase_templates = [t.model_dump(mode="json") for t in strain_data.phase_templates]
    strain.updated_at = utcnow()

    await session.commit()
    await session.refresh(strain)
    print(f"[STRAINS] Updated strain {strain.id}")
    return strain


@router.delete("/{strain_id}", response_model=Dict[str, str])
async def delete_strain(
    strain: Strain = Depends(get_strain_or_404),
    session: AsyncSession = Depends(get_db_dependency())
):
    strain_id = strain.id
    # SQLite does not enforce ON DELETE SET NULL unless foreign keys are switched on
    await session.execute(update(Plant).where(Plant.strain_id == strain_id).values(strain_id=None))
    await session.delete(strain)
    await session.commit()
    print(f"[STRAINS] Deleted strain {strain_id}")
    return {"status": "success", "message": "Strain deleted successfully"}


@router.get("/{strain_id}/phases", response_model=List[PhaseInstance])
async def preview_strain_phases(strain: Strain = Depends(get_strain_or_404)):
    """The phase sequence a new plant of this strain would start with."""
    templates = [PhaseTemplate.model_validate(t) for t in strain.phase_templates or []]
    return create_plant_phases(templates, is_autoflower=strain.is_autoflower)
