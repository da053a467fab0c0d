from proace.exceptions import NotFoundError
from proace.forms import load_form
from proace.forms.support import SettingForm
from proace.models import SiteSetting
from proace.utils.db_utils import atomic


def get_setting(key):
    setting = SiteSetting.query.filter_by(key=key).first()
    if setting is None:
        raise NotFoundError(f"Setting '{key}' not found")
    return setting


def update_setting(key, value):
    """Create or replace a site setting; a None value clears it"""
    fields = load_form(SettingForm, {"key": key, "value": value})
    setting = SiteSetting.query.filter_by(key=fields["key"]).first()

    with atomic(f"update setting {fields['key']}") as session:
        if setting is None:
            setting = SiteSetting(key=fields["key"])
            session.add(setting)
        setting.value = fields["value"]

    return setting
