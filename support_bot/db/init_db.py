from support_bot.db.models import Base
from support_bot.db.session import get_engine


def init_db() -> None:
    Base.metadata.create_all(bind=get_engine())
