from examroom.app_config import get_app_environ_config
from examroom.schemas.init import init_beanie_odm
from examroom.shared.storage.mongo import get_mongo_client


async def init_schema():
    label = get_app_environ_config().MONGO_LABEL
    mongo_client = get_mongo_client(label)
    db = mongo_client.get_default_database(default="exam_room")
    await init_beanie_odm(db)


if __name__ == "__main__":
    import asyncio

    asyncio.run(init_schema())
