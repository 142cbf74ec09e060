"""Troubleshooting steps and likely causes derived from KB articles."""

from triage_engine.core.models import IntakeRecord, KBArticle

MAX_STEPS = 8
MAX_CAUSES = 5
SHORT_SERIAL_LENGTH = 10

# (substrings in the article body, cause sentence), checked in order
ARTICLE_CAUSE_TRIGGERS: tuple[tuple[tuple[str, ...], str], ...] = (
    (
        ("password", "credential"),
        "Expired or unsynced credentials can block authentication flows.",
    ),
    (
        ("cache",),
        "Corrupted local cache/session data may prevent the app from loading expected content.",
    ),
    (
        ("vpn", "global protect"),
        "VPN tunnel instability or policy mismatch may prevent internal resource access.",
    ),
)

SHORT_SERIAL_CAUSE = (
    "The identifier appears abbreviated; a partial serial can cause "
    "record-mismatch during support triage."
)
FALLBACK_CAUSE = (
    "A transient client-side issue or configuration drift is likely; "
    "verify baseline settings and retry."
)


class PlaybookBuilder:
    """Turns an article body and intake context into actionable guidance."""

    def steps(self, article: KBArticle) -> list[str]:
        lines = [line.strip() for line in article.body_text.splitlines() if line.strip()]
        if not lines:
            return []

        source = lines[1:] or lines
        candidates = [line for line in source if not line.lower().startswith("http")][:MAX_STEPS]
        steps = [line.replace("•", "").strip() for line in candidates]
        steps = [step for step in steps if step]

        if not steps:
            return [f"Open {article.title} and follow the documented procedure in order."]
        return steps

    def possible_causes(self, intake: IntakeRecord, article: KBArticle | None) -> list[str]:
        causes: list[str] = []

        if intake.app_in_use:
            causes.append(
                f"The issue may be specific to {intake.app_in_use} settings, "
                "cached credentials, or stale app state."
            )
        if intake.wifi_ssid:
            causes.append(
                f"Network restrictions or instability on SSID '{intake.wifi_ssid}' "
                "may be interrupting required services."
            )

        serial = intake.normalized_serial
        if serial is not None and len(serial) < SHORT_SERIAL_LENGTH:
            causes.append(SHORT_SERIAL_CAUSE)

        if article is not None:
            body = article.body_text.lower()
            for needles, cause in ARTICLE_CAUSE_TRIGGERS:
                if any(needle in body for needle in needles):
                    causes.append(cause)

        if not causes:
            causes.append(FALLBACK_CAUSE)

        return list(dict.fromkeys(causes))[:MAX_CAUSES]
