"""Test basic package imports."""


def test_package_import():
    """Test that the main package can be imported."""
    import vinted_alerts

    assert vinted_alerts.__version__ == "0.1.0"


def test_main_module_import():
    """Test that main modules can be imported."""
    from vinted_alerts import engine, interfaces, main

    assert callable(main.main)
    assert engine.AlertEngine
    assert interfaces.IListingFetcher


def test_models_import():
    """Test that model modules can be imported."""
    from vinted_alerts.models import alert, config, listing, match, notification

    assert alert.Alert and config.Configuration and listing.Listing
    assert match.MatchRecord and notification.Notification
