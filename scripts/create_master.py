# scripts/create_master.py
import sys, asyncio
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from getpass import getpass

from studioboard.core.errors import AuthError
from studioboard.db.base import Base
from studioboard.db.session import AsyncSessionLocal, engine
from studioboard.provider.sql import SqlProvider


async def main():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    provider = SqlProvider(AsyncSessionLocal)
    nome = input("Master nome: ").strip() or "Master"
    email = input("Master email: ").strip().lower()
    password = getpass("Master password: ")

    try:
        user = await provider.sign_up(email, password, {"name": nome, "role": "Master", "approved": True})
    except AuthError as e:
        print(f"Erro: {e.message}")
        return

    # flag gravada no perfil: vale como Master mesmo fora do MASTER_EMAIL
    await provider.upsert("profiles", {"id": user.id, "is_superuser": True, "role": "Master", "approved": True})
    print(f"Master criado: {user.id} ({user.email})")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
