"""Classification of stack frames into framework and user code."""

from collections.abc import Iterable, Sequence

from .models import StackFrame

DEFAULT_FRAMEWORK_PREFIXES: tuple[str, ...] = (
    "java.",
    "javax.",
    "sun.",
    "com.sun.",
    "jdk.",
    "org.springframework.",
    "org.apache.",
    "org.hibernate.",
    "org.slf4j.",
    "ch.qos.logback.",
    "com.zaxxer.hikari.",
    "io.netty.",
    "reactor.",
    "com.fasterxml.jackson.",
)


class FrameClassifier:
    """Tells framework/library frames apart from user frames.

    Pure predicate over class names. The prefix set is injected so callers
    (and tests) can supply their own namespaces.
    """

    def __init__(self, prefixes: Iterable[str] = DEFAULT_FRAMEWORK_PREFIXES):
        self.prefixes = tuple(prefixes)

    def is_framework_frame(self, class_name: str | None) -> bool:
        """Return True if the class belongs to a known framework namespace.

        A missing class name is conservatively treated as framework code.
        """
        if not class_name:
            return True
        return class_name.startswith(self.prefixes)

    def user_frames(self, frames: Sequence[StackFrame]) -> list[StackFrame]:
        """Frames that are not framework frames, in original order."""
        return [frame for frame in frames if not self.is_framework_frame(frame.class_name)]

    def first_user_frame(self, frames: Sequence[StackFrame]) -> StackFrame | None:
        """First non-framework frame, or None if all frames are framework code."""
        for frame in frames:
            if not self.is_framework_frame(frame.class_name):
                return frame
        return None
