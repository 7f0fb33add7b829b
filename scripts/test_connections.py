#!/usr/bin/env python3
"""
Connection Test Script

Run this to verify MongoDB and the moderation API are reachable.
Usage: python scripts/test_connections.py
"""
import sys
sys.path.insert(0, '.')

from campuslink.db.mongodb import test_mongo_connection
from campuslink.services.moderation_service import get_moderation_service
from campuslink.core.config import get_settings


def main():
    settings = get_settings()
    print("=" * 50)
    print("CAMPUSLINK MENTORSHIP - CONNECTION TEST")
    print("=" * 50)

    # Test MongoDB
    print("\n[1] Testing MongoDB...")
    print(f"    URI: {settings.mongodb_uri}")
    print(f"    Database: {settings.mongodb_db}")
    if test_mongo_connection():
        print("    ✅ MongoDB: CONNECTED")
    else:
        print("    ❌ MongoDB: FAILED")

    # Test DeepSeek moderation (only if API key is set)
    print("\n[2] Testing DeepSeek moderation...")
    if settings.deepseek_api_key and settings.deepseek_api_key != "your_deepseek_api_key_here":
        print(f"    Base URL: {settings.deepseek_base_url}")
        print(f"    Policies: profile={settings.profile_moderation_policy}, "
              f"request={settings.request_moderation_policy}, chat={settings.chat_moderation_policy}")
        if get_moderation_service().test_connection():
            print("    ✅ DeepSeek: CONNECTED")
        else:
            print("    ❌ DeepSeek: FAILED")
    else:
        print("    ⚠️  DeepSeek: API key not configured (blocking call sites will fail)")

    print("\n" + "=" * 50)
    print("Connection test complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
