from datetime import timezone

from primonotes.application.id_service import generate_id
from primonotes.infrastructure.clock import SystemClock


def test_system_clock_is_utc():
    assert SystemClock().now().tzinfo is timezone.utc


def test_generate_id_is_lowercase_ulid():
    first, second = generate_id(), generate_id()
    assert len(first) == 26
    assert first == first.lower()
    assert first != second
