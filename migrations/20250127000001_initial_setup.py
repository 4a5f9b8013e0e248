"""Create the items collection with its indexes and two sample items."""

from datetime import UTC, datetime

import pymongo


async def up(db):
    await db.create_collection("items")
    items = db["items"]
    await items.create_index([("createdAt", pymongo.DESCENDING)])
    await items.create_index([("updatedAt", pymongo.DESCENDING)])

    now = datetime.now(UTC)
    await items.insert_many(
        [
            {
                "name": "Sample Item 1",
                "description": "This is a sample item",
                "createdAt": now,
                "updatedAt": now,
            },
            {
                "name": "Sample Item 2",
                "description": "Another sample item",
                "createdAt": now,
                "updatedAt": now,
            },
        ]
    )


async def down(db):
    await db["items"].drop()
