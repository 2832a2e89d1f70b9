#!/usr/bin/env python3
"""
Quick script to check the Supabase connection and the vault tables
Run with: python check_connection.py
"""

from academic_vault.services.supabase_service import supabase_service
from academic_vault.core.config import settings

VAULT_TABLES = ["folders", "files", "collections", "profiles"]


def check_connection():
    print("🔍 Checking Supabase Connection...")
    print("=" * 50)

    print(f"\n📋 Configuration:")
    print(f"   SUPABASE_URL: {settings.supabase_url}")
    print(f"   SUPABASE_KEY: {settings.supabase_key[:20]}..." if settings.supabase_key else "   SUPABASE_KEY: ❌ Not set")
    print(f"   DATABASE_URL: {'✅ set' if settings.database_url else '❌ Not set (in-memory gateway will be used)'}")
    print(f"   GCS_BUCKET_NAME: {settings.gcs_bucket_name or '❌ Not set'}")

    if not supabase_service.supabase:
        print("\n❌ Supabase client not initialized!")
        print("   Check your .env file and restart the server")
        return False

    print("\n✅ Supabase client initialized!")

    missing = []
    for table in VAULT_TABLES:
        try:
            supabase_service.supabase.table(table).select('id').limit(1).execute()
            print(f"✅ {table} table exists and is accessible")
        except Exception as e:
            print(f"⚠️  {table} table: {str(e)}")
            missing.append(table)

    print("\n" + "=" * 50)
    if missing:
        print("❌ Some tables are missing. Run `alembic upgrade head` against DATABASE_URL.")
        return False
    print("✅ All checks passed! The vault tables are reachable.")
    return True


if __name__ == "__main__":
    success = check_connection()
    exit(0 if success else 1)
