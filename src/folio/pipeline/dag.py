DEFAULT_PHASES: list[str] = [
    "segment",
    "merge",
    "format",
    "reassemble",
]


def validate_phases(phases: list[str]) -> list[str]:
    bad = [p for p in phases if p not in DEFAULT_PHASES]
    if bad:
        raise ValueError(f"Unknown phases: {bad}")
    # Later phases consume earlier outputs, so run a prefix in order
    expected = DEFAULT_PHASES[: len(phases)]
    if phases != expected:
        raise ValueError(f"Phases must be a prefix of {DEFAULT_PHASES}, got {phases}")
    return phases
