import asyncio
import sys
import os

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import Settings
from db.session import build_engine, build_session_factory
from services.participant_service import ParticipantService
from core.logger import logger

async def reset_participants():
    print("⚠️  WARNING: This will DELETE ALL PARTICIPANTS and their submitted answers.")
    print("Questions and event settings are kept.")
    confirm = input("Type 'CONFIRM' to proceed: ")
    
    if confirm != "CONFIRM":
        print("Operation cancelled.")
        return

    settings = Settings()
    engine = build_engine(settings)
    session_factory = build_session_factory(engine)

    async with session_factory() as session:
        try:
            deleted = await ParticipantService(session, batch_limit=settings.BATCH_WRITE_LIMIT).delete_all()
            print(f"✅ Deleted {deleted} participants.")
        except Exception as e:
            await session.rollback()
            print(f"❌ Error resetting participants: {e}")
            logger.error("Error resetting participants", error=str(e))
            raise
        finally:
            await engine.dispose()

if __name__ == "__main__":
    if os.name == 'nt':
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    asyncio.run(reset_participants())
