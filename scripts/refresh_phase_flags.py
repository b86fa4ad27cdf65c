#!/usr/bin/env python3
"""
Script to find and repair plants whose cached phase flags (is_active /
is_completed) disagree with their phase start dates.
"""

import sys
import os
import asyncio
from dotenv import load_dotenv

# Load environment variables from .env file
env_path = os.path.join(os.path.dirname(__file__), '..', '.env')
load_dotenv(env_path)

from sqlalchemy import select

from app.core.database import engine, async_session_maker
from app.dependencies import load_phases, store_phases
from app.models import Plant
from app.services.phases import flags_drifted, refresh_phase_flags, get_current_phase


async def refresh_flags(execute: bool = False, plant_id: int = None) -> int:
    """Report (and with execute, fix) plants with drifted phase flags."""
    async with async_session_maker() as session:
        query = select(Plant).order_by(Plant.id)
        if plant_id is not None:
            query = query.where(Plant.id == plant_id)
        result = await session.execute(query)
        plants = result.scalars().all()

        if not plants:
            print("❌ No plants found")
            return 0

        drifted = []
        for plant in plants:
            phases = load_phases(plant)
            if not flags_drifted(phases):
                continue
            drifted.append(plant)

            stored_active = next((p.name for p in phases if p.is_active), None)
            current = get_current_phase(phases)
            print(f"🌱 Plant {plant.id} '{plant.name}'")
            print(f"   Stored active phase:  {stored_active or 'none'}")
            print(f"   Derived current phase: {current.name if current else 'none'}")

            if execute:
                store_phases(plant, refresh_phase_flags(phases))

        print()
        print(f"Checked {len(plants)} plant(s), {len(drifted)} with drifted phase flags")

        if not drifted:
            print("✅ Nothing to repair")
        elif execute:
            await session.commit()
            print(f"✅ Repaired {len(drifted)} plant(s)")
        else:
            print(f"⚠️  DRY RUN MODE - No changes made")
            print(f"   To repair these plants, run with --execute flag")

    await engine.dispose()
    return len(drifted)


def main():
    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    if "--help" in sys.argv:
        print("Usage:")
        print("  python scripts/refresh_phase_flags.py [plant_id] [--execute]")
        print()
        print("Examples:")
        print("  python scripts/refresh_phase_flags.py")
        print("  python scripts/refresh_phase_flags.py 12 --execute")
        sys.exit(0)

    plant_id = int(args[0]) if args else None
    execute = "--execute" in sys.argv
    asyncio.run(refresh_flags(execute, plant_id))


if __name__ == "__main__":
    main()
