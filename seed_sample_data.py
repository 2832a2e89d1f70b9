#!/usr/bin/env python3
"""
Script to seed a user's vault with a demo folder and the onboarding sample files
Run with: python seed_sample_data.py <user_id>
"""

import asyncio
import sys

from academic_vault.main import build_gateway
from academic_vault.schemas.auth import Identity
from academic_vault.services.vault_controller import VaultStateController


async def seed(user_id: str):
    print("🧪 Seeding sample data...")
    print("=" * 60)

    gateway = build_gateway()
    controller = VaultStateController(gateway, Identity(user_id=user_id, email_verified=True))

    folder = await controller.create_folder("Getting Started", parent_id=None)
    print(f"✅ Created folder '{folder.title}' ({folder.id})")

    await controller.navigate(folder.id)
    files = await controller.add_sample_files()
    for file in files:
        print(f"   - {file.title} ({file.type.value}, {file.size} bytes)")

    print("\n" + "=" * 60)
    print(f"✅ Added {len(files)} sample file(s) for user {user_id}")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python seed_sample_data.py <user_id>")
        exit(1)
    asyncio.run(seed(sys.argv[1]))
