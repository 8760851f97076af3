#!/usr/bin/env python3
"""Script to verify the Firebase connection and read access to the tasks collection."""

import asyncio
import os
import sys
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

async def check_firebase_connection():
    """Connect with the configured credentials and list the tasks collection."""
    try:
        from config.config import FIREBASE_CREDENTIALS_FILE, TASKS_COLLECTION
        from services.firebase_service import FirebaseService

        print("Checking Firebase connection...")

        required_vars = [
            'FIREBASE_TYPE',
            'FIREBASE_PROJECT_ID',
            'FIREBASE_PRIVATE_KEY_ID',
            'FIREBASE_PRIVATE_KEY',
            'FIREBASE_CLIENT_EMAIL'
        ]
        missing_vars = [var for var in required_vars if not os.getenv(var)]

        if missing_vars and not FIREBASE_CREDENTIALS_FILE:
            print(f"❌ Missing environment variables: {', '.join(missing_vars)}")
            print("   (or set FIREBASE_CREDENTIALS_FILE to a service account JSON file)")
            return False

        firebase_service = FirebaseService()
        print("✅ Firebase service initialized successfully")

        tasks = await firebase_service.list_tasks()
        print(f"✅ Read {len(tasks)} task(s) from the '{TASKS_COLLECTION}' collection")
        for task in tasks[:5]:
            status = "done" if task.completed else "open"
            print(f"   - [{status}] {task.text} (deadline: {task.deadline or 'none'})")

        return True

    except Exception as e:
        print(f"❌ Firebase connection check failed: {str(e)}")
        return False

if __name__ == "__main__":
    async def main():
        success = await check_firebase_connection()
        if success:
            print("\n🎉 Firebase is reachable! The bot should be able to load the task list.")
            sys.exit(0)
        else:
            print("\n💥 Firebase check failed! Please check your configuration.")
            sys.exit(1)

    asyncio.run(main())
