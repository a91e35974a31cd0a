"""Enable/label state of user-facing action controls."""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass


@dataclass
class Control:
    """A button-like control: enabled flag plus label."""

    label: str
    enabled: bool = True

    @contextmanager
    def busy(self, label: str) -> Iterator["Control"]:
        """Disable the control and show ``label`` until the block exits.

        The previous label and enabled state are restored however the block
        ends, including on exceptions.
        """
        original_label, original_enabled = self.label, self.enabled
        self.enabled = False
        self.label = label
        try:
            yield self
        finally:
            self.label = original_label
            self.enabled = original_enabled
