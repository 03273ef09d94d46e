from tierpanel.domain.entities import RoleType

ROLE_RANK: dict[str, int] = {
    "member": 1,
    "premium": 2,
    "vip": 3,
}

ROLES: tuple[RoleType, ...] = ("member", "premium", "vip")


def rank(role: str) -> int:
    """
    Rank of a membership tier.

    Raises KeyError for an unknown role: that is a configuration error and
    must never default silently to the lowest tier.
    """
    try:
        return ROLE_RANK[role]
    except KeyError:
        raise KeyError(f"Unknown role: {role!r}") from None


def at_least(role: str, required: str) -> bool:
    return rank(role) >= rank(required)


def below(role: str, ceiling: str) -> bool:
    return rank(role) < rank(ceiling)
