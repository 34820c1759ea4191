from sqlalchemy.orm import declarative_base

Base = declarative_base()


def load_models() -> None:
    """Import every model module so the tables are registered on Base."""
    from studyhub.models import user, password_reset, content, discussion, vote, chat  # noqa: F401
