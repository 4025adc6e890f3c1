from datetime import date

import pytest

import alerts
from models import NotFoundError


def test_alert_lifecycle():
    rent = alerts.add_alert("temple_rent", "Rent due", date(2024, 8, 1))
    alerts.add_alert("late_payment", "Chase July dues")

    assert alerts.count_active_alerts() == 2
    assert [a["id"] for a in alerts.fetch_alerts()][0] == rent  # dated alerts first

    alerts.deactivate_alert(rent)
    assert alerts.count_active_alerts() == 1
    assert len(alerts.fetch_alerts(active_only=False)) == 2


def test_add_alert_validation():
    with pytest.raises(ValueError):
        alerts.add_alert("birthday", "Nope")
    with pytest.raises(ValueError):
        alerts.add_alert("temple_rent", "   ")


def test_deactivate_unknown_alert():
    with pytest.raises(NotFoundError):
        alerts.deactivate_alert(7)
