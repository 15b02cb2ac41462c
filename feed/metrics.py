"""
FeedMetrics: Tracks simple statistics for the snapshot feed and the
command channel.
"""


class FeedMetrics:
    """
    Tracks polls, accepted and rejected snapshots, and command outcomes.

    Attributes:
        polls (int): Snapshot requests issued.
        accepted (int): Snapshots decoded and handed to the reconciler.
        malformed (int): Snapshots rejected by validation.
        unavailable (int): Polls that failed on the network or JSON decode.
        commands_sent (int): Commands the authority acknowledged.
        command_failures (int): Commands that could not be delivered.
    """

    def __init__(self):
        """Initialize all counters to zero."""
        self.polls = 0
        self.accepted = 0
        self.malformed = 0
        self.unavailable = 0
        self.commands_sent = 0
        self.command_failures = 0

    def report(self) -> dict:
        """
        Return a snapshot of current metrics.

        Returns:
            dict: Every counter keyed by its attribute name.
        """
        return {
            "polls": self.polls,
            "accepted": self.accepted,
            "malformed": self.malformed,
            "unavailable": self.unavailable,
            "commands_sent": self.commands_sent,
            "command_failures": self.command_failures,
        }
