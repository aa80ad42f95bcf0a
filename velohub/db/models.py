from dataclasses import dataclass

INVITE_FIELDS = ("email", "name", "link", "storeName", "ownerName")


@dataclass(slots=True)
class StoreExpense:
    store_id: str
    description: str
    amount: float
    date: str
    category: str
    paid: bool = False
    id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True, slots=True)
class InviteRequest:
    email: str
    name: str
    link: str
    store_name: str
    owner_name: str

    @classmethod
    def from_payload(cls, payload: object) -> "InviteRequest":
        if not isinstance(payload, dict):
            raise ValueError("Invite payload must be a JSON object")
        for field in INVITE_FIELDS:
            if not isinstance(payload.get(field), str):
                raise ValueError(f"Invite payload is missing '{field}'")
        return cls(
            email=payload["email"],
            name=payload["name"],
            link=payload["link"],
            store_name=payload["storeName"],
            owner_name=payload["ownerName"],
        )
