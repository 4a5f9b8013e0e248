"""
MongoDB-backed data endpoint.
"""

from aiohttp import web

from triad.service.api.handlers import BaseHandler

ITEMS_COLLECTION = "items"
ITEMS_LIMIT = 10


class DataHandler(BaseHandler):
    async def list_items(self, request: web.Request) -> web.Response:
        """
        GET /api/data

        Returns up to ten documents from the items collection.
        """
        try:
            db = self.database.get_db()
            items = await db[ITEMS_COLLECTION].find({}).limit(ITEMS_LIMIT).to_list()
        except Exception as e:
            await self.log.error("Error fetching data", {"error": str(e)})
            return await self.failure_response("Failed to fetch data")

        await self.log.info("Data fetched from MongoDB", {"count": len(items)})
        return await self.json_response({"success": True, "data": items})
