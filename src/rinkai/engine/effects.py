"""Card effect text: tokenizer, extractor and applicator.

Effect text is written in a small closed vocabulary, e.g.::

    【室長・講師】体験+2。〈室長〉さらに入塾+1。経理-1

* ``【…】`` lists the staff roles allowed to execute the card (``・`` joined).
* ``体験`` / ``入塾`` / ``満足`` / ``経理`` followed by ``+N`` or ``-N`` change
  experience / enrollment / satisfaction / accounting.
* ``〈…〉`` opens a conditional span running to the next ``。`` or ``〈``. A
  role label applies the span's gains only when that role executes the
  card; a label with ``以上``/``以下`` is a threshold condition that is
  reported but not executed.

Everything outside the vocabulary is ignored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Literal

from .events import EventSink, notify
from .state import ResourceState
from .types import (
    Card,
    ConditionalDelta,
    ConditionalEntry,
    DeferredEffect,
    ParsedEffect,
    Resource,
    ResourceDelta,
    Role,
)

RESOURCE_NAMES: dict[str, Resource] = {
    "体験": "experience",
    "入塾": "enrollment",
    "満足": "satisfaction",
    "経理": "accounting",
}

RESTRICTION_ROLE_NAMES: dict[str, Role] = {
    "室長": "leader",
    "講師": "teacher",
    "事務": "staff",
    "専任講師": "teacher",
}

CONDITION_ROLE_NAMES: dict[str, Role] = {
    "室長": "leader",
    "講師": "teacher",
    "事務": "staff",
}

ROLE_JOINER = "・"
SENTENCE_END = "。"
CONDITION_OPEN = "〈"
THRESHOLD_QUALIFIERS = ("以上", "以下")

_TOKEN_RE = re.compile(
    r"【(?P<restrict>[^】]+)】"
    r"|〈(?P<cond>[^〉]+)〉"
    r"|(?P<res>" + "|".join(RESOURCE_NAMES) + r")(?P<sign>[+\-])(?P<amount>[0-9]+)"
)

TokenKind = Literal["restrict", "cond", "gain", "loss"]


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    start: int
    end: int
    label: str = ""
    resource: Resource | None = None
    amount: int = 0


def tokenize(text: str) -> Iterator[Token]:
    for m in _TOKEN_RE.finditer(text):
        if m.group("restrict") is not None:
            yield Token(kind="restrict", start=m.start(), end=m.end(), label=m.group("restrict"))
        elif m.group("cond") is not None:
            yield Token(kind="cond", start=m.start(), end=m.end(), label=m.group("cond").strip())
        else:
            yield Token(
                kind="gain" if m.group("sign") == "+" else "loss",
                start=m.start(),
                end=m.end(),
                resource=RESOURCE_NAMES[m.group("res")],
                amount=int(m.group("amount")),
            )


def _span_end(text: str, start: int) -> int:
    ends = [i for i in (text.find(SENTENCE_END, start), text.find(CONDITION_OPEN, start)) if i >= 0]
    return min(ends) if ends else len(text)


def _restrictions(tokens: list[Token]) -> frozenset[Role]:
    for tok in tokens:
        if tok.kind != "restrict":
            continue
        names = (n.strip() for n in tok.label.split(ROLE_JOINER))
        return frozenset(RESTRICTION_ROLE_NAMES[n] for n in names if n in RESTRICTION_ROLE_NAMES)
    return frozenset()


def _conditionals(text: str, tokens: list[Token], role: str) -> list[ConditionalEntry]:
    out: list[ConditionalEntry] = []
    for tok in tokens:
        if tok.kind != "cond":
            continue
        end = _span_end(text, tok.end)
        cond_role = CONDITION_ROLE_NAMES.get(tok.label)
        if cond_role is not None:
            if cond_role != role:
                continue
            for g in tokens:
                if g.kind == "gain" and tok.end <= g.start < end:
                    assert g.resource is not None
                    out.append(ConditionalDelta(resource=g.resource, delta=g.amount, condition=cond_role))
        elif any(q in tok.label for q in THRESHOLD_QUALIFIERS):
            out.append(DeferredEffect(raw_condition=tok.label, raw_effect=text[tok.end:end].strip()))
    return out


def parse_effect(effect_text: str, role: str) -> ParsedEffect:
    """Parse `effect_text` as executed by `role`. Never raises on odd text."""
    text = effect_text or ""
    tokens = list(tokenize(text))

    cond_starts = [t.start for t in tokens if t.kind == "cond"]
    zone_start = min(cond_starts) if cond_starts else None

    base: list[ResourceDelta] = []
    for tok in tokens:
        if tok.kind != "gain":
            continue
        # Everything after the first conditional bracket belongs to conditional text.
        if zone_start is not None and tok.start > zone_start:
            continue
        assert tok.resource is not None
        base.append(ResourceDelta(resource=tok.resource, delta=tok.amount))

    conditional = _conditionals(text, tokens, role)

    for tok in tokens:
        if tok.kind == "loss":
            assert tok.resource is not None
            base.append(ResourceDelta(resource=tok.resource, delta=-tok.amount))

    return ParsedEffect(
        base=tuple(base),
        conditional=tuple(conditional),
        restrictions=_restrictions(tokens),
    )


def can_place(card: Card, role: str) -> bool:
    restrictions = parse_effect(card.effect_text, role).restrictions
    return not restrictions or role in restrictions


def apply_effect(card: Card, role: Role, state: ResourceState, sink: EventSink | None = None) -> bool:
    """Resolve `card` executed by `role` against `state`.

    Returns False, leaving `state` untouched, when the card's role restriction
    excludes `role`.
    """
    parsed = parse_effect(card.effect_text, role)

    if parsed.restrictions and role not in parsed.restrictions:
        notify(
            sink,
            "error",
            "PLACEMENT_REJECTED",
            card=card.card_name,
            role=role,
            allowed=sorted(parsed.restrictions),
        )
        return False

    notify(sink, "action", "EFFECT_APPLIED", card=card.card_name, category=card.category, role=role)

    for eff in parsed.base:
        state.update(eff.resource, eff.delta)

    for entry in parsed.conditional:
        if isinstance(entry, DeferredEffect):
            notify(
                sink,
                "info",
                "DEFERRED_EFFECT_SKIPPED",
                card=card.card_name,
                condition=entry.raw_condition,
                effect=entry.raw_effect,
            )
            continue
        state.update(entry.resource, entry.delta)

    return True
