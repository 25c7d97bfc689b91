"""ORM model for the token denylist (logout)."""

from sqlalchemy import Column, DateTime, Integer, String, func

from warden.models.base import Base


class RevokedToken(Base):
    """
    A token id (jti) that must never resolve again.

    expires_at mirrors the token's own exp; rows past it are pruned by warden.retention.
    """

    __tablename__ = "revoked_tokens"

    jti = Column(String(64), primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    revoked_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
