"""
Assistant conversation phases.

    AWAITING_BILL_OR_QUESTION --(bill photo)--> AWAITING_PRICING_ANSWER
    AWAITING_PRICING_ANSWER  --(text answer)--> READY_TO_EMIT_UPDATE
    READY_TO_EMIT_UPDATE     --(items applied)--> AWAITING_BILL_OR_QUESTION
    READY_TO_EMIT_UPDATE     --(no block / bad block)--> AWAITING_PRICING_ANSWER

A new bill photo restarts the bill flow from any phase. A failed model
call puts the conversation back in the phase it had before the turn.
"""


class AssistantPhase:
    AWAITING_BILL_OR_QUESTION = "awaiting_bill_or_question"
    AWAITING_PRICING_ANSWER = "awaiting_pricing_answer"
    READY_TO_EMIT_UPDATE = "ready_to_emit_update"  # model call for the update is in flight

    ALL = (AWAITING_BILL_OR_QUESTION, AWAITING_PRICING_ANSWER, READY_TO_EMIT_UPDATE)


IDLE = AssistantPhase.AWAITING_BILL_OR_QUESTION


# Answers that mean "forget the bill" while a pricing question is open
CANCEL_KEYWORDS = ["cancel", "stop", "skip", "never mind", "nevermind", "rehne do", "mat karo"]


def is_cancel(text: str) -> bool:
    lowered = (text or "").strip().lower()
    return any(lowered == k or lowered.startswith(k + " ") for k in CANCEL_KEYWORDS)
