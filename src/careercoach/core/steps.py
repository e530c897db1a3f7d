from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, get_args

from careercoach.errors import NavigationError

Step = Literal[
    "landing",
    "upload",
    "job-description",
    "analysis",
    "dashboard",
    "cover-letter",
    "written-practice",
    "verbal-practice",
    "candidate-questions",
    "mock-interview",
    "summary",
    "history",
]

ALL_STEPS: tuple[Step, ...] = get_args(Step)

PRACTICE_STEPS: frozenset[Step] = frozenset(
    {"cover-letter", "written-practice", "verbal-practice", "candidate-questions", "mock-interview"}
)

# Header actions: home, start new analysis, history.
GLOBAL_TARGETS: frozenset[Step] = frozenset({"landing", "upload", "history"})

ALLOWED_EDGES: dict[Step, frozenset[Step]] = {
    "landing": frozenset(),
    "upload": frozenset({"job-description"}),
    "job-description": frozenset({"analysis"}),
    "analysis": frozenset({"job-description", "dashboard"}),
    "dashboard": PRACTICE_STEPS | {"analysis", "summary"},
    **{step: PRACTICE_STEPS | {"dashboard", "summary"} for step in PRACTICE_STEPS},
    "summary": frozenset({"dashboard"}),
    "history": frozenset({"dashboard", "summary"}),
}

# Canonical forward path; every practice module shares one position.
_PATH_POSITION: dict[Step, int] = {
    "landing": 0,
    "upload": 1,
    "job-description": 2,
    "analysis": 3,
    "dashboard": 4,
    **{step: 5 for step in PRACTICE_STEPS},
    "summary": 6,
}
_PATH_LENGTH = max(_PATH_POSITION.values())
_HIDDEN_PROGRESS: frozenset[Step] = frozenset({"landing", "history"})


def is_step(value: str) -> bool:
    return value in ALL_STEPS


def can_navigate(source: Step, target: Step) -> bool:
    return target in GLOBAL_TARGETS or target in ALLOWED_EDGES[source]


def progress_fraction(step: Step) -> int:
    position = _PATH_POSITION.get(step)
    if position is None or position == 0:
        return 0
    return max(5, round(position / _PATH_LENGTH * 100))


def progress_display(step: Step) -> int | None:
    if step in _HIDDEN_PROGRESS:
        return None
    return progress_fraction(step)


@dataclass(slots=True)
class Navigator:
    current: Step = "landing"
    back_stack: list[Step] = field(default_factory=list)

    def navigate_to(self, step: Step) -> None:
        if not is_step(step):
            raise NavigationError(f"unknown step '{step}'")
        if step != self.current and not can_navigate(self.current, step):
            raise NavigationError(f"cannot navigate from '{self.current}' to '{step}'")
        self.back_stack.append(self.current)
        self.current = step

    def go_back(self) -> None:
        if not self.back_stack:
            return
        self.current = self.back_stack.pop()

    @property
    def can_go_back(self) -> bool:
        return bool(self.back_stack)
