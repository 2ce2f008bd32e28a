"""Smoke test for the demonstration script."""

from pump_schedule.sample_usage import main


def test_main_prints_report(capsys):
    main()

    output = capsys.readouterr().out
    assert "Risk by pump:" in output
    assert "Capacity by stage:" in output
    assert "Calendar (next 14 days):" in output
