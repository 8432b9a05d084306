#!/usr/bin/env python3
"""
Onboarding wizard: own language -> receive language -> voice gender.

`advance` is pure. It takes the user row and the reply text and returns the
column updates to persist plus the messages to send; the dispatcher does
both. Unrecognised replies never advance the step, they re-send the prompt.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

import languages
from languages import tr


class LanguageStep(str, Enum):
    INIT = "INIT"
    CHOOSE_SOURCE = "CHOOSE_SOURCE"
    CHOOSE_TARGET = "CHOOSE_TARGET"
    CHOOSE_GENDER = "CHOOSE_GENDER"
    READY = "READY"

    @classmethod
    def of(cls, value) -> "LanguageStep":
        """Parse a stored step; unknown or empty values restart the wizard."""
        try:
            return cls(value)
        except ValueError:
            return cls.INIT


INCOMPLETE_SETUP = "⚠️ Setup incomplete. Text *reset* to start over."


@dataclass
class WizardOutcome:
    updates: Dict[str, Any] = field(default_factory=dict)
    replies: List[str] = field(default_factory=list)

    @property
    def advanced(self) -> bool:
        return "language_step" in self.updates


def is_ready(user: Dict[str, Any]) -> bool:
    return bool(user.get("source_lang") and user.get("target_lang") and user.get("voice_gender"))


def reset_outcome() -> WizardOutcome:
    """Clear every preference and re-send the neutral welcome menu."""
    return WizardOutcome(
        updates={
            "language_step": LanguageStep.INIT.value,
            "source_lang": None,
            "target_lang": None,
            "voice_gender": None,
            "ui_lang": None,
        },
        replies=[languages.welcome_message()],
    )


def _choose_source(text: str) -> WizardOutcome:
    choice = languages.pick_language(text)
    if choice is None:
        return WizardOutcome(replies=[tr("en", "reply1to5") + "\n" + languages.welcome_message()])
    code = choice["code"]
    return WizardOutcome(
        updates={
            "ui_lang": code,
            "source_lang": code,
            "language_step": LanguageStep.CHOOSE_SOURCE.value,
        },
        replies=[tr(code, "how"), languages.menu_message(tr(code, "receive"))],
    )


def _choose_target(user: Dict[str, Any], text: str) -> WizardOutcome:
    ui = user.get("ui_lang") or "en"
    receive_menu = languages.menu_message(tr(ui, "receive"))
    choice = languages.pick_language(text)
    if choice is None:
        return WizardOutcome(replies=[tr(ui, "reply1to5") + "\n" + receive_menu])
    if choice["code"] == user.get("source_lang"):
        return WizardOutcome(replies=[tr(ui, "targetDiff") + "\n" + receive_menu])
    return WizardOutcome(
        updates={"target_lang": choice["code"], "language_step": LanguageStep.CHOOSE_TARGET.value},
        replies=[tr(ui, "voice")],
    )


def _choose_gender(user: Dict[str, Any], text: str) -> WizardOutcome:
    ui = user.get("ui_lang") or "en"
    gender = languages.parse_gender(text)
    if gender is None:
        return WizardOutcome(replies=[tr(ui, "genderErr")])
    # CHOOSE_GENDER is passed through on the way to READY
    return WizardOutcome(
        updates={"voice_gender": gender, "language_step": LanguageStep.READY.value},
        replies=[tr(ui, "setupDone")],
    )


def advance(user: Dict[str, Any], text: str) -> WizardOutcome:
    """
    Apply one wizard reply.

    Args:
        user: The stored user row
        text: Trimmed message body

    Returns:
        WizardOutcome with the columns to update and the replies to send
    """
    step = LanguageStep.of(user.get("language_step"))

    if step is LanguageStep.READY:
        if is_ready(user):
            return WizardOutcome()
        return WizardOutcome(replies=[INCOMPLETE_SETUP])

    # below READY a row missing an earlier answer is sent back to that question
    if step is LanguageStep.INIT or not user.get("source_lang"):
        return _choose_source(text)
    if step is LanguageStep.CHOOSE_SOURCE or not user.get("target_lang"):
        return _choose_target(user, text)
    if step is LanguageStep.CHOOSE_TARGET:
        return _choose_gender(user, text)
    if step is LanguageStep.CHOOSE_GENDER:
        if user.get("voice_gender"):
            ui = user.get("ui_lang") or "en"
            return WizardOutcome(
                updates={"language_step": LanguageStep.READY.value},
                replies=[tr(ui, "setupDone")],
            )
        return _choose_gender(user, text)
    raise AssertionError(f"Unhandled wizard step {step!r}")
