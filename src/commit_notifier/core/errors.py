"""
Error taxonomy

각 오류는 처리 단위(파일, 커밋, 요청)의 경계에서 잡히며
형제 단위의 처리를 중단시키지 않습니다.
"""


class CommitNotifierError(Exception):
    """모든 애플리케이션 오류의 기본 클래스"""


class ConfigurationError(CommitNotifierError):
    """필수 설정값 누락 - 시작 단계에서 치명적"""

    def __init__(self, errors):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class PayloadValidationError(CommitNotifierError):
    """웹훅 본문이 비어있거나 형식이 잘못됨 (4xx)"""


class AnalysisServiceError(CommitNotifierError):
    """completion 호출 실패 또는 사용할 수 없는 응답"""


class ArtifactIOError(CommitNotifierError):
    """첨부파일 스테이징 중 쓰기/읽기/삭제 실패"""


class DeliveryError(CommitNotifierError):
    """이메일 전송 실패"""
