"""
Field constraint checks for User, Role and Preference.

Each constraint is a small rule object with a pure ``check(value)``
predicate and a message template. Rules are attached per field in
``FIELD_RULES``; ``validate`` runs every rule of every field and returns all
violations, sorted by field path.
"""

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from email_validator import EmailNotValidError, validate_email

ROLE_NAME_PATTERN = r"^ROLE_[A-Z_]+$"
THEMES = ("light", "dark")


@dataclass(frozen=True)
class Violation:
    """One failed constraint: the field path and the rendered message."""

    path: str
    message: str


class Constraint:
    """Base rule. Subclasses implement ``is_valid`` and set ``message``."""

    message = "Cette valeur n'est pas valide."

    def is_valid(self, value: Any) -> bool:
        raise NotImplementedError

    def render(self, value: Any) -> str:
        return self.message.replace("{{ value }}", str(value))

    def check(self, value: Any) -> list[str]:
        """Return the failure messages for ``value`` (empty when valid)."""
        return [] if self.is_valid(value) else [self.render(value)]


class NotBlank(Constraint):
    """Value is not None, False, an empty string or an empty collection. Whitespace counts as content."""

    def __init__(self, message: str = "Cette valeur ne doit pas être vide."):
        self.message = message

    def is_valid(self, value: Any) -> bool:
        if value is None or value is False:
            return False
        if isinstance(value, str):
            return value != ""
        if isinstance(value, (list, tuple, set, dict)):
            return len(value) > 0
        return True


class NotNull(Constraint):
    def __init__(self, message: str = "Cette valeur ne doit pas être nulle."):
        self.message = message

    def is_valid(self, value: Any) -> bool:
        return value is not None


class Length(Constraint):
    """
    String length bounds (inclusive). ``None`` and ``""`` are skipped so that
    a blank value reports only the NotBlank message, not a length message too.
    """

    def __init__(
        self,
        min: int | None = None,
        max: int | None = None,
        min_message: str = "Cette chaîne est trop courte. Elle doit avoir au minimum {{ limit }} caractères.",
        max_message: str = "Cette chaîne est trop longue. Elle doit avoir au maximum {{ limit }} caractères.",
    ):
        self.min = min
        self.max = max
        self.min_message = min_message
        self.max_message = max_message

    def check(self, value: Any) -> list[str]:
        if value is None or value == "" or not isinstance(value, str):
            return []
        size = len(value)
        if self.min is not None and size < self.min:
            return [self.min_message.replace("{{ limit }}", str(self.min))]
        if self.max is not None and size > self.max:
            return [self.max_message.replace("{{ limit }}", str(self.max))]
        return []

    def is_valid(self, value: Any) -> bool:
        return not self.check(value)


class Regex(Constraint):
    """Full-string pattern match; empty values are left to NotBlank."""

    def __init__(self, pattern: str, message: str = "Cette valeur n'est pas valide."):
        self.pattern = re.compile(pattern)
        self.message = message

    def is_valid(self, value: Any) -> bool:
        if value is None or value == "":
            return True
        return isinstance(value, str) and self.pattern.fullmatch(value) is not None


class Choice(Constraint):
    def __init__(self, choices: Sequence[Any], message: str = "Cette valeur doit être l'un des choix proposés."):
        self.choices = tuple(choices)
        self.message = message

    def is_valid(self, value: Any) -> bool:
        if value is None or value == "":
            return True
        return value in self.choices


class Email(Constraint):
    """Address syntax as checked by email-validator; DNS is not consulted."""

    def __init__(self, message: str = "Cette valeur n'est pas une adresse email valide."):
        self.message = message

    def is_valid(self, value: Any) -> bool:
        if value is None or value == "":
            return True
        if not isinstance(value, str):
            return False
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError:
            return False
        return True


class IsType(Constraint):
    """Python type check for values coming straight from decoded JSON."""

    def __init__(self, *types: type, message: str = "Cette valeur doit être de type {{ type }}."):
        self.types = types
        self.message = message.replace("{{ type }}", "|".join(t.__name__ for t in types))

    def is_valid(self, value: Any) -> bool:
        if value is None:
            return True
        # bool is an int subclass; only accept it where bool is asked for.
        if isinstance(value, bool) and bool not in self.types:
            return False
        return isinstance(value, self.types)


class Each(Constraint):
    """Apply inner constraints to every item of a list, reporting ``path[i]``."""

    def __init__(self, *constraints: Constraint):
        self.constraints = constraints

    def is_valid(self, value: Any) -> bool:
        return not self.check_items(value)

    def check_items(self, value: Any) -> list[tuple[int, str]]:
        if not isinstance(value, (list, tuple)):
            return []
        failures: list[tuple[int, str]] = []
        for index, item in enumerate(value):
            for constraint in self.constraints:
                failures.extend((index, msg) for msg in constraint.check(item))
        return failures


# =============================================================================
# Field rules per entity
# =============================================================================

FieldRules = dict[str, tuple[Constraint, ...]]

USER_RULES: FieldRules = {
    "email": (
        NotBlank("L'email ne peut pas être vide"),
        IsType(str),
        Length(max=180, max_message="L'email ne peut pas dépasser {{ limit }} caractères"),
        Email("L'email '{{ value }}' n'est pas un email valide"),
    ),
    "nom": (
        NotBlank("Le nom ne peut pas être vide"),
        IsType(str),
        Length(
            min=2,
            max=50,
            min_message="Le nom doit contenir au moins {{ limit }} caractères",
            max_message="Le nom ne peut pas dépasser {{ limit }} caractères",
        ),
    ),
    "prenom": (
        NotBlank("Le prénom ne peut pas être vide"),
        IsType(str),
        Length(
            min=2,
            max=50,
            min_message="Le prénom doit contenir au moins {{ limit }} caractères",
            max_message="Le prénom ne peut pas dépasser {{ limit }} caractères",
        ),
    ),
    "password": (
        NotBlank("Le mot de passe ne peut pas être vide"),
        IsType(str),
        Length(
            min=8,
            max=4096,
            min_message="Le mot de passe doit contenir au moins {{ limit }} caractères",
            max_message="Le mot de passe ne peut pas dépasser {{ limit }} caractères",
        ),
    ),
    "roles": (
        NotNull("La liste des rôles ne peut pas être nulle"),
        IsType(list, message="Les rôles doivent être une liste"),
        Each(
            NotBlank("Un rôle ne peut pas être vide"),
            IsType(str, message="Un rôle doit être une chaîne de caractères"),
        ),
    ),
}

ROLE_RULES: FieldRules = {
    "nom": (
        NotBlank("Le nom du rôle ne peut pas être vide"),
        IsType(str),
        Length(
            min=3,
            max=50,
            min_message="Le nom du rôle doit contenir au moins {{ limit }} caractères",
            max_message="Le nom du rôle ne peut pas dépasser {{ limit }} caractères",
        ),
        Regex(
            ROLE_NAME_PATTERN,
            "Le nom du rôle doit commencer par 'ROLE_' et ne contenir que des majuscules et des underscores",
        ),
    ),
    "description": (
        IsType(str),
        Length(max=255, max_message="La description ne peut pas dépasser {{ limit }} caractères"),
    ),
}

PREFERENCE_RULES: FieldRules = {
    "langue": (
        NotBlank("La langue ne peut pas être vide"),
        IsType(str),
        Length(
            min=2,
            max=5,
            min_message="La langue doit contenir au moins {{ limit }} caractères",
            max_message="La langue ne peut pas dépasser {{ limit }} caractères",
        ),
    ),
    "theme": (
        NotBlank("Le thème ne peut pas être vide"),
        IsType(str),
        Choice(THEMES, "Le thème doit être 'light' ou 'dark'"),
    ),
    "notifications": (
        NotNull("Les notifications ne peuvent pas être nulles"),
        IsType(bool, message="Les notifications doivent être un booléen"),
    ),
}

# Keyed by model class name so this module stays free of ORM imports.
FIELD_RULES: dict[str, FieldRules] = {
    "User": USER_RULES,
    "Role": ROLE_RULES,
    "Preference": PREFERENCE_RULES,
}


def check_field(path: str, value: Any, constraints: Iterable[Constraint]) -> list[Violation]:
    """Run every constraint against one value; never stops at the first failure."""
    violations: list[Violation] = []
    for constraint in constraints:
        if isinstance(constraint, Each):
            violations.extend(
                Violation(f"{path}[{index}]", msg) for index, msg in constraint.check_items(value)
            )
            continue
        violations.extend(Violation(path, msg) for msg in constraint.check(value))
    return violations


def validate(
    entity: Any,
    rules: FieldRules | None = None,
    overrides: dict[str, Any] | None = None,
    getter: Callable[[Any, str], Any] = getattr,
) -> list[Violation]:
    """
    Validate ``entity`` against its field rules and return all violations.

    ``overrides`` replaces the value read for a field (used to check the
    plaintext password while the entity already holds, or will hold, a hash).
    Violations are ordered by field path; within a field, by rule order.
    """
    if rules is None:
        rules = FIELD_RULES[type(entity).__name__]
    overrides = overrides or {}
    violations: list[Violation] = []
    for path, constraints in rules.items():
        value = overrides[path] if path in overrides else getter(entity, path, None)
        violations.extend(check_field(path, value, constraints))
    # sorted() is stable, so per-field rule order is kept.
    return sorted(violations, key=lambda v: v.path)


def violations_to_dict(violations: Iterable[Violation]) -> dict[str, str]:
    """Field-path keyed map; the first message of each path wins."""
    result: dict[str, str] = {}
    for violation in violations:
        result.setdefault(violation.path, violation.message)
    return result
