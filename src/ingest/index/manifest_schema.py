from typing import Optional
from pydantic import BaseModel

# manifests 컬렉션 필드 경로
REPOSITORY_FIELD = "metadata.repository"
REPOSITORY_STARS_FIELD = "metadata.repository_stars"
SHA_FIELD = "metadata.sha"


class ManifestStub(BaseModel):
    """
    삭제 대상 식별용 최소 manifest 정보. payload는 보지 않는다
    """
    id: str
    repository: str
    stars: int = -1
    sha: Optional[str] = None

    @classmethod
    def from_document(cls, doc: dict) -> "ManifestStub":
        metadata = doc.get("metadata") or {}
        return cls(
            id=str(doc["_id"]),
            repository=metadata.get("repository", ""),
            stars=metadata.get("repository_stars", -1),
            sha=metadata.get("sha"),
        )


def create_manifest_document(
    manifest_id: str,
    name: str,
    description: Optional[str],
    repository: str,
    stars: int,
    official: bool,
    sha: str,
    file_path: Optional[str] = None,
) -> dict:
    """
    manifests 컬렉션용 document 생성
    """
    return {
        "_id": manifest_id,
        "name": name,
        "description": description,
        "metadata": {
            "repository": repository,
            "repository_stars": stars,
            "official_repository": official,
            # 정렬/스코어링용 숫자 필드
            "official_repository_number": 1 if official else 0,
            "sha": sha,
            "file_path": file_path,
        },
    }
