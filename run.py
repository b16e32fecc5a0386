import asyncio

import uvicorn
from trashapp.core.config import settings
from trashapp.core.init_db import init_db

if __name__ == "__main__":
    # Создаем таблицы заранее, чтобы первая заявка не ждала create_all
    asyncio.run(init_db())

    # reload=True игнорирует host, поэтому оставляем выключенным
    uvicorn.run(
        "trashapp.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=False,
    )
