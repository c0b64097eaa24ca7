"""Reference lists for pipeline, highlight and activity forms."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

STAGES: List[str] = [
    "Initial Communication",
    "Proposal",
    "Negotiation",
    "PoC",
    "Sign Agreement",
    "Closed Won",
    "Closed Lost",
]
CLOSED_WON = "Closed Won"
CLOSED_LOST = "Closed Lost"
CLOSED_STAGES = (CLOSED_WON, CLOSED_LOST)

PILARS: List[str] = [
    "Fleet Management",
    "IoT Analytic and Security",
    "Network & Infra",
    "IoT Industrial",
    "Advance Communication",
    "Mobile Security & Emerging",
    "UCC and Business Productivity",
]

TOWERS: List[str] = ["EPINI", "ESEM"]

_FAMILIES_BY_PILAR: Dict[str, Tuple[str, List[str]]] = {
    "Fleet Management": ("EPINI", ["Fleet Sense", "Fleet Sight"]),
    "IoT Analytic and Security": ("EPINI", [
        "IoT Analytics",
        "Video Intelligent",
        "Sense Analytics",
        "IoT Sphere",
        "Enterprise Data Lake with Low Code Integrated System",
    ]),
    "Network & Infra": ("EPINI", [
        "Private Network",
        "Managed Service SDWAN",
        "Network Priority",
        "Direct Peering",
        "Repeater Picotel",
        "IaaS",
        "PVR",
        "Femtocell",
    ]),
    "IoT Industrial": ("EPINI", [
        "Intank",
        "Fuel Management System",
        "Smart Lighting",
        "Smart Meter",
        "Connected Mine",
        "Asset Performance Management",
        "Smart Dashboard",
        "Vessel Monitoring System",
        "Tap on Bus",
        "IoT Envion",
    ]),
    "Advance Communication": ("EPINI", [
        "IoT Control Center",
        "Soundbox",
        "Connected Worker",
        "LinkCar",
        "Modem Router Industrial",
        "EDC",
    ]),
    "Mobile Security & Emerging": ("ESEM", [
        "Mobile Device Management (MDM)",
        "Mobile Endpoint Protection (MEP)",
        "Telkomsel Guard",
        "Kaspersky Standard Protection",
        "TEMS - Spam Call Protection",
    ]),
    "UCC and Business Productivity": ("ESEM", [
        "CloudX Hub",
        "nGage Robocall API",
        "Attendance Apps",
        "CloudX Communication",
        "Field Force Management",
        "Smart Tax",
        "Robotic Process Automation (RPA)",
        "Custom POS",
        "Enterprise Call Solution",
        "Office 365",
        "Telkomsel Marketing Automation (TMA) / CEP",
        "HCM Suites (Modular Apps)",
        "Smart Voice Comm (SVC)",
        "nGage Number Masking",
        "Touch to Talk",
        "nGage Omnichannel",
        "nGage Video API",
        "AVA - AI Virtual Assistant",
        "SAVIA",
    ]),
}

# product family -> (pilar, tower)
PRODUCT_FAMILY_MAPPING: Dict[str, Tuple[str, str]] = {
    family: (pilar, tower)
    for pilar, (tower, families) in _FAMILIES_BY_PILAR.items()
    for family in families
}
PRODUCT_FAMILIES: List[str] = list(PRODUCT_FAMILY_MAPPING.keys())

PRESALES_LOBS: List[str] = [
    "Financial Institutions",
    "ICT, Retail & Business Services",
    "Manufacturing, Transportation, Logistic & Infrastructure",
    "Central Government, Hospitality & Education",
    "Resource & Energy",
    "Local Government, Hospitality & Education",
]

TELKOM_SI_OPTIONS: List[str] = ["Telkom", "SI"]

HIGHLIGHT_CATEGORIES: List[str] = ["High", "Medium", "Low"]
# "Complate" is the value stored in existing rows
HIGHLIGHT_STATUSES: List[str] = ["On Progress", "Complate"]
DEPT_IN_CHARGE_OPTIONS: List[str] = ["AM", "Product", "Delivery"]

ROLE_ADMIN = "admin"
ROLE_USER = "user"


def pilar_and_tower(product_family: str) -> Optional[Tuple[str, str]]:
    """Pilar and tower for a product family, None when unmapped."""
    return PRODUCT_FAMILY_MAPPING.get(product_family)
