import pytest
import yaml
from httpx import ASGITransport, AsyncClient

from app.directory.models import SiteSettings
from app.directory.site import load_site_settings
from app.main import create_application


def test_missing_file_uses_defaults(tmp_path):
    site = load_site_settings(tmp_path / "absent.yaml")
    assert site == SiteSettings()
    assert site.footer_text.startswith("©")


def test_yaml_overrides_defaults(tmp_path):
    path = tmp_path / "site.yaml"
    path.write_text("siteTitle: Northside Campus\nfooterText: Northside\n", encoding="utf-8")

    site = load_site_settings(path)
    assert site.site_title == "Northside Campus"
    assert site.footer_text == "Northside"
    assert site.hero_title == SiteSettings().hero_title


def test_empty_file_uses_defaults(tmp_path):
    path = tmp_path / "site.yaml"
    path.write_text("", encoding="utf-8")
    assert load_site_settings(path) == SiteSettings()


def test_invalid_yaml_raises(tmp_path):
    path = tmp_path / "site.yaml"
    path.write_text("siteTitle: [unclosed\n", encoding="utf-8")
    with pytest.raises(yaml.YAMLError):
        load_site_settings(path)


@pytest.mark.anyio
async def test_settings_endpoint_serves_file_values(tmp_path, settings):
    (tmp_path / "site.yaml").write_text("heroTitle: Find People\n", encoding="utf-8")
    app = create_application(settings)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/settings")
    assert response.status_code == 200
    assert response.json()["heroTitle"] == "Find People"
    assert response.json()["siteTitle"] == "Campus Directory"
