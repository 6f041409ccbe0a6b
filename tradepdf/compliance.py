"""
Australian state work-health-and-safety references shown on compliance
documents. Informational only; documents make no compliance claims.

License: MIT
"""

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class StateCompliance:
    state: str
    authority: str
    legislation: str
    regulations: str
    notes: str


AU_STATE_COMPLIANCE: Dict[str, StateCompliance] = {
    "WA": StateCompliance(
        state="Western Australia",
        authority="WorkSafe WA",
        legislation="Work Health and Safety Act 2020 (WA)",
        regulations="Work Health and Safety (General) Regulations 2022",
        notes="WA transitioned to harmonised WHS laws on 31 March 2022.",
    ),
    "NSW": StateCompliance(
        state="New South Wales",
        authority="SafeWork NSW",
        legislation="Work Health and Safety Act 2011 (NSW)",
        regulations="Work Health and Safety Regulation 2017",
        notes="NSW operates under the model WHS framework.",
    ),
    "VIC": StateCompliance(
        state="Victoria",
        authority="WorkSafe Victoria",
        legislation="Occupational Health and Safety Act 2004 (Vic)",
        regulations="Occupational Health and Safety Regulations 2017",
        notes="Victoria has not adopted the model WHS laws.",
    ),
    "QLD": StateCompliance(
        state="Queensland",
        authority="Workplace Health and Safety Queensland",
        legislation="Work Health and Safety Act 2011 (Qld)",
        regulations="Work Health and Safety Regulation 2011",
        notes="QLD operates under the model WHS framework.",
    ),
    "SA": StateCompliance(
        state="South Australia",
        authority="SafeWork SA",
        legislation="Work Health and Safety Act 2012 (SA)",
        regulations="Work Health and Safety Regulations 2012",
        notes="SA operates under the model WHS framework.",
    ),
    "TAS": StateCompliance(
        state="Tasmania",
        authority="WorkSafe Tasmania",
        legislation="Work Health and Safety Act 2012 (Tas)",
        regulations="Work Health and Safety Regulations 2012",
        notes="TAS operates under the model WHS framework.",
    ),
    "NT": StateCompliance(
        state="Northern Territory",
        authority="NT WorkSafe",
        legislation="Work Health and Safety (National Uniform Legislation) Act 2011",
        regulations="Work Health and Safety (National Uniform Legislation) Regulations 2011",
        notes="NT operates under the model WHS framework.",
    ),
    "ACT": StateCompliance(
        state="Australian Capital Territory",
        authority="WorkSafe ACT",
        legislation="Work Health and Safety Act 2011 (ACT)",
        regulations="Work Health and Safety Regulation 2011",
        notes="ACT operates under the model WHS framework.",
    ),
}

DEFAULT_STATE = "WA"


def get_state_compliance(state_code: Optional[str] = None) -> StateCompliance:
    """Look up a state by code, falling back to Western Australia."""
    code = (state_code or DEFAULT_STATE).strip().upper()
    return AU_STATE_COMPLIANCE.get(code, AU_STATE_COMPLIANCE[DEFAULT_STATE])
