from __future__ import annotations

from typing import NewType

ConversationId = NewType("ConversationId", str)
MessageId = NewType("MessageId", str)
UserId = NewType("UserId", str)
OfferId = NewType("OfferId", str)
RentalRequestId = NewType("RentalRequestId", str)
ContractId = NewType("ContractId", str)
