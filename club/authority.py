"""
관리자 권한 확인

관리자 연산과 대출 override는 호출마다 자격 증명을 명시적으로 받음.
비밀 값은 생성 시 주입되며 코어는 설정을 직접 읽지 않음.
"""

import hmac
import logging

logger = logging.getLogger(__name__)


class AdminAuthority:
    """관리자 자격 증명 검사기

    Args:
        secret: 관리자 비밀 값 (빈 문자열 불가)

    사용 예시:
    ```python
    authority = AdminAuthority(settings.admin_password)
    if not authority.verify(credential):
        return Outcome.fail(LedgerErrorKind.BAD_CREDENTIAL, "invalid admin credential")
    ```
    """

    def __init__(self, secret: str):
        if not secret:
            raise ValueError("admin secret은 필수입니다")
        self._secret = secret.encode("utf-8")

    def verify(self, credential: str | None) -> bool:
        """자격 증명 확인 (상수 시간 비교)"""
        if not credential:
            return False

        matched = hmac.compare_digest(credential.encode("utf-8"), self._secret)
        if not matched:
            logger.warning("관리자 자격 증명 불일치")
        return matched
