"""Static directory of staff who receive project inquiries."""

from __future__ import annotations

from typing import Optional, Tuple

from app.core.config import settings
from app.services.assignment.types import StaffMember

STAFF_DIRECTORY: Tuple[StaffMember, ...] = (
    StaffMember(
        id="staff_001",
        name="Alex Rivera",
        role="Frontend Lead",
        email="frontend@forgerdigital.com",
        skills=("react", "next.js", "typescript", "tailwind", "ui/ux", "figma", "frontend", "web"),
        primary_services=("Web Application Development", "Custom Software Development"),
    ),
    StaffMember(
        id="staff_002",
        name="Sarah Chen",
        role="Backend Lead",
        email="backend@forgerdigital.com",
        skills=(
            "node.js",
            "python",
            "database",
            "sql",
            "postgresql",
            "api",
            "graphql",
            "backend",
            "server",
        ),
        primary_services=(
            "Custom Software Development",
            "Enterprise Solutions",
            "Data & Analytics",
        ),
    ),
    StaffMember(
        id="staff_003",
        name="Marcus Johnson",
        role="Mobile Lead",
        email="mobile@forgerdigital.com",
        skills=("react native", "ios", "android", "flutter", "mobile", "app store"),
        primary_services=("Mobile App Development",),
    ),
    StaffMember(
        id="staff_004",
        name="David Kim",
        role="Cloud Architect",
        email="cloud@forgerdigital.com",
        skills=("aws", "azure", "gcp", "cloud", "docker", "kubernetes", "serverless", "infrastructure"),
        primary_services=("Cloud Infrastructure & DevOps", "DevOps Automation"),
    ),
    StaffMember(
        id="staff_005",
        name="Elena Rodriguez",
        role="AI/ML Engineer",
        email="ai@forgerdigital.com",
        skills=("ai", "machine learning", "nlp", "python", "tensorflow", "openai", "llm", "bot"),
        primary_services=("AI Integration", "Data & Analytics"),
    ),
    StaffMember(
        id="staff_006",
        name="James Wilson",
        role="Security Specialist",
        email="security@forgerdigital.com",
        skills=(
            "security",
            "compliance",
            "penetration testing",
            "encryption",
            "audit",
            "cybersecurity",
        ),
        primary_services=("Cybersecurity & Compliance",),
    ),
    StaffMember(
        id="staff_007",
        name="Michael Chang",
        role="Blockchain Developer",
        email="blockchain@forgerdigital.com",
        skills=("blockchain", "web3", "smart contract", "solidity", "ethereum", "crypto"),
        primary_services=("Blockchain Development",),
    ),
)

ADMIN_EMAIL = settings.SMTP_USER or "admin@forgerdigital.com"


def find_staff_by_email(email: str) -> Optional[StaffMember]:
    email = email.lower()
    for member in STAFF_DIRECTORY:
        if member.email == email:
            return member
    return None
