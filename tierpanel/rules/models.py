from pydantic import BaseModel, Field, model_validator


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class PricingRules(BaseModel):
    currency: str = "IDR"
    packages: dict[str, int]

    @model_validator(mode="after")
    def check_packages(self) -> "PricingRules":
        missing = {"premium", "vip"} - set(self.packages)
        if missing:
            raise ValueError(f"pricing.packages missing: {sorted(missing)}")
        extra = set(self.packages) - {"premium", "vip"}
        if extra:
            raise ValueError(f"pricing.packages has unknown packages: {sorted(extra)}")
        if any(amount <= 0 for amount in self.packages.values()):
            raise ValueError("pricing.packages amounts must be positive")
        if self.packages["vip"] <= self.packages["premium"]:
            raise ValueError("pricing.packages.vip must be above premium")
        return self


class PaymentMethod(BaseModel):
    id: str
    name: str
    account_number: str | None = None


class UploadsRules(BaseModel):
    max_upload_bytes: int
    allowed_extensions: list[str]
    proof_prefix: str = "payments"
    avatar_prefix: str = "avatars"


class ToolBackendRules(BaseModel):
    endpoint: str
    timeout_seconds: float = 30.0


class ToolsRules(BaseModel):
    backends: dict[str, ToolBackendRules] = Field(default_factory=dict)


class NotificationsRules(BaseModel):
    dispatcher: str = "dev"
    timeout_seconds: float = 10.0
    token_env: str = "TELEGRAM_BOT_TOKEN"
    chat_id_env: str = "TELEGRAM_CHAT_ID"


class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)


class Rules(BaseModel):
    project: ProjectRules
    pricing: PricingRules
    payment_methods: list[PaymentMethod]
    uploads: UploadsRules
    tools: ToolsRules = Field(default_factory=ToolsRules)
    notifications: NotificationsRules = Field(default_factory=NotificationsRules)
    ops: OpsRules = Field(default_factory=OpsRules)

    def price_of(self, package_type: str) -> int:
        return self.pricing.packages[package_type]

    def payment_method(self, method_id: str) -> PaymentMethod | None:
        for method in self.payment_methods:
            if method.id == method_id:
                return method
        return None
