from datetime import datetime
from typing import Any, Dict, List, Optional

from schemas.common import CamelModel


class QualityEstimate(CamelModel):
    quality: str  # excellent | good | fair | poor
    score: int
    issues: List[str] = []


class FileMetadata(CamelModel):
    name: str
    extension: str
    size: int


class ResumeOut(CamelModel):
    id: str
    user_id: str
    filename: str
    uploaded_at: Optional[datetime] = None
    parsed_data: Optional[Dict[str, Any]] = None


class ResumeDetail(ResumeOut):
    original_text: str


class ResumeUploadResult(CamelModel):
    resume_id: str
    parsed_data: Dict[str, Any]
    quality_estimate: QualityEstimate
    metadata: FileMetadata


class ResumeStats(CamelModel):
    total_resumes: int
    average_text_length: int
    latest_upload: Optional[datetime] = None
