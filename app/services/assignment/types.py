from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True, slots=True)
class StaffMember:
    id: str
    name: str
    role: str
    email: str
    skills: Tuple[str, ...]
    primary_services: Tuple[str, ...]

    def to_summary(self) -> Dict[str, str]:
        """Compact form stored alongside an inquiry."""
        return {"id": self.id, "name": self.name, "role": self.role, "email": self.email}


@dataclass(slots=True)
class ProjectAssignmentResult:
    assigned_staff: List[StaffMember] = field(default_factory=list)
    primary_category: str = "General Inquiry"
    detected_keywords: List[str] = field(default_factory=list)
    confidence_score: float = 0.1
    analysis_log: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["assigned_staff"] = [s.to_summary() for s in self.assigned_staff]
        return data
