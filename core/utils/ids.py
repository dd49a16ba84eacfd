"""
식별자 생성 유틸리티
"""

import uuid


def new_id() -> str:
    """새 엔티티 ID (UUID4 hex)"""
    return uuid.uuid4().hex
