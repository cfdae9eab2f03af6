"""토큰 레포지토리 — 일회용 토큰 생명주기.

Token Repository — Lifecycle of single-use credential records
(verification codes, reset tokens, refresh tokens).
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.database import utcnow
from hrms.models.enums import TokenType
from hrms.models.token import Token


class TokenRepository:
    """토큰 관련 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling token queries. Tokens are looked up by raw value.
    """

    async def create(
        self,
        db: AsyncSession,
        user_id: UUID,
        token: str,
        token_type: TokenType,
        expires_at: datetime,
    ) -> Token:
        """새 토큰을 생성합니다 (Create a new token record)."""
        db_token: Token = Token(
            user_id=user_id,
            token=token,
            type=token_type.value,
            expires_at=expires_at,
        )
        db.add(db_token)
        await db.flush()
        return db_token

    async def get_valid(
        self,
        db: AsyncSession,
        token: str,
        token_type: TokenType,
        user_id: UUID | None = None,
    ) -> Token | None:
        """사용되지 않고 만료되지 않은 토큰을 조회합니다.

        Retrieve an unused, unexpired token of the given type.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            token: 원본 토큰 값 (Raw token value)
            token_type: 토큰 유형 (Expected token type)
            user_id: 소유자 필터, 선택 (Optional owner filter)

        Returns:
            Token | None: 유효 토큰 또는 None (Valid token or None)
        """
        query: Select = select(Token).where(
            Token.token == token,
            Token.type == token_type.value,
            Token.is_used.is_(False),
            Token.expires_at > utcnow(),
        )
        if user_id is not None:
            query = query.where(Token.user_id == user_id)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def consume(self, db: AsyncSession, token_id: UUID) -> bool:
        """토큰을 사용 처리합니다. 이미 사용된 경우 False.

        Atomically mark a token used. Returns False if another request
        consumed it first.
        """
        result = await db.execute(
            update(Token)
            .where(Token.id == token_id, Token.is_used.is_(False))
            .values(is_used=True)
        )
        return result.rowcount == 1

    async def delete_refresh_tokens(self, db: AsyncSession, user_id: UUID) -> None:
        """사용자의 모든 리프레시 토큰을 삭제합니다.

        Delete all refresh tokens for a user (single active refresh session).
        """
        await db.execute(
            delete(Token).where(
                Token.user_id == user_id,
                Token.type == TokenType.REFRESH_TOKEN.value,
            )
        )

    async def revoke_refresh_tokens(self, db: AsyncSession, user_id: UUID) -> int:
        """사용자의 미사용 리프레시 토큰을 모두 사용 처리합니다.

        Mark every outstanding refresh token of a user as used.

        Returns:
            int: 무효화된 토큰 수 (Number of revoked tokens)
        """
        result = await db.execute(
            update(Token)
            .where(
                Token.user_id == user_id,
                Token.type == TokenType.REFRESH_TOKEN.value,
                Token.is_used.is_(False),
            )
            .values(is_used=True)
        )
        return result.rowcount or 0


# 싱글턴 인스턴스 (Singleton instance)
token_repository: TokenRepository = TokenRepository()
