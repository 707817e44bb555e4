# create_db.py
"""
Создаёт базу данных из настроек, если её ещё нет.
Подключается к служебной базе postgres тем же пользователем.
"""

import asyncio

import asyncpg

from saferide.config import settings


async def create_db() -> None:
    db = settings.database
    sys_conn = await asyncpg.connect(
        user=db.DB_USER,
        password=db.DB_PASSWORD,
        host=db.DB_HOST,
        port=db.DB_PORT,
        database="postgres",
        ssl=db.DB_SSL,
    )
    try:
        exists = await sys_conn.fetchval(
            "SELECT 1 FROM pg_database WHERE datname = $1", db.DB_NAME
        )
        if exists:
            print(f"Database {db.DB_NAME} already exists.")
            return
        print(f"Creating database {db.DB_NAME}...")
        # Имя базы нельзя передать параметром, поэтому экранируем как идентификатор
        quoted = '"' + db.DB_NAME.replace('"', '""') + '"'
        await sys_conn.execute(f"CREATE DATABASE {quoted}")
        print("Database created.")
    finally:
        await sys_conn.close()


if __name__ == "__main__":
    asyncio.run(create_db())
