from dataclasses import dataclass


@dataclass(frozen=True)
class Customer:
    id: str
    name: str
    email: str = ""
    phone: str = ""
    service_address: str = ""
    billing_address: str | None = None


@dataclass(frozen=True)
class Job:
    id: str
    name: str
    customer_id: str | None = None
    service_address: str | None = None


__all__ = ["Customer", "Job"]
