"""
AI Assistant

The assistant itself runs server-side: the server composes the prompt
from the user's data and calls the model. The client only sends the
message and reads back the append-only interaction log.

Contract drafting is the exception: the client builds the drafting
prompt from the contract terms and sends it alongside them.
"""

import json
from typing import Any, Union

from pydantic import ValidationError

from quantor.data import DataAccessLayer
from quantor.models import (
    AiInteraction,
    ChatMessage,
    ChatReply,
    ContractTerms,
    GeneratedContract,
    Notification,
)
from quantor.resources.base import field_errors_from
from quantor.resources.keys import AI_CHAT, AI_CONTRACT, AI_INTERACTIONS


CONTRACT_PROMPT = """You are an expert in drafting Brazilian commercial contracts. Write a
professional, legally sound contract with the following terms:

CONTRACT TERMS:
- Segment: {segment}
- Start date: {start_date}
- Validity: {validity_period}
- Payment methods: {payment_methods}
- Adhesion fee: {adhesion}
- Monthly value: R$ {monthly_value}

CONTRACTING PARTY:
{party}

INSTRUCTIONS:
1. Write a complete, professional contract
2. Use clauses specific to the {segment} segment
3. Include every clause required by Brazilian law
4. Format it as HTML with inline CSS suitable for printing
5. Include a header, a footer and page numbering
6. Leave space for signatures

RETURN ONLY THE COMPLETE HTML, WITHOUT ANY EXPLANATION."""


def build_contract_prompt(terms: ContractTerms) -> str:
    """
    Drafting prompt for a contract.

    A custom template replaces the standard instructions; the terms are
    then appended as JSON for the model to fill in.
    """
    if terms.custom_template:
        data = json.dumps(terms.to_payload(), ensure_ascii=False)
        return f"{terms.custom_template}\n\nAdapt this template using the data: {data}"

    party = ""
    if terms.relationship is not None:
        rel = terms.relationship
        party = (
            f"- Name / company name: {rel.social_name}\n"
            f"- Document: {rel.document}\n"
            f"- Address: {rel.address}"
        )
    return CONTRACT_PROMPT.format(
        segment=terms.segment,
        start_date=terms.start_date.isoformat(),
        validity_period=terms.validity_period,
        payment_methods=", ".join(terms.payment_methods),
        adhesion="Yes" if terms.has_adhesion else "No",
        monthly_value=f"{terms.monthly_value:,.2f}",
        party=party or "- Not provided",
    )


class AiChatService:
    """Conversation with the financial assistant."""

    def __init__(self, dal: DataAccessLayer):
        self._dal = dal

    async def interactions(self) -> list[AiInteraction]:
        """Past exchanges, oldest first."""
        message = "Error loading conversation history. Try again."
        rows = await self._dal.fetch(AI_INTERACTIONS, failure_message=message)
        interactions = self._dal.parse_response(
            AI_INTERACTIONS,
            rows,
            lambda data: [AiInteraction.model_validate(row) for row in data or []],
            failure_message=message,
        )
        return sorted(interactions, key=lambda i: i.id)

    async def send_message(self, message: Union[str, ChatMessage]) -> ChatReply:
        """
        Ask the assistant something.

        The reply is also appended to the interaction log server-side,
        so the cached log is invalidated.
        """
        if isinstance(message, str):
            try:
                message = ChatMessage(message=message)
            except ValidationError as e:
                self._dal.notify(
                    Notification.validation(
                        "Error sending message. Type a message first.",
                        field_errors_from(e),
                        AI_CHAT,
                    )
                )
                raise

        data = await self._dal.mutate(
            "POST",
            AI_CHAT,
            message.to_payload(),
            invalidates=(AI_INTERACTIONS,),
            failure_message="Error sending message. Try again.",
        )
        return self._dal.parse_response(
            AI_CHAT,
            data,
            ChatReply.model_validate,
            method="POST",
            failure_message="Error sending message. Try again.",
        )

    async def generate_contract(
        self, terms: Union[ContractTerms, dict[str, Any]]
    ) -> GeneratedContract:
        """
        Draft a contract as HTML.

        Nothing is cached or invalidated: a drafted contract is not stored
        server-side until the user saves it.

        Raises:
            ValidationError: If the terms are incomplete (notified, not sent)
            ApiError: If the request or its response failed (notified)
        """
        if not isinstance(terms, ContractTerms):
            try:
                terms = ContractTerms.model_validate(terms)
            except ValidationError as e:
                self._dal.notify(
                    Notification.validation(
                        "Error generating contract. Check the highlighted fields.",
                        field_errors_from(e),
                        AI_CONTRACT,
                    )
                )
                raise

        message = "Error generating contract. Try again."
        data = await self._dal.mutate(
            "POST",
            AI_CONTRACT,
            {"prompt": build_contract_prompt(terms), "contractData": terms.to_payload()},
            failure_message=message,
        )
        return self._dal.parse_response(
            AI_CONTRACT,
            data,
            GeneratedContract.model_validate,
            method="POST",
            failure_message=message,
        )
