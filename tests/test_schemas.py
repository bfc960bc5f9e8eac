from types import SimpleNamespace

import pytest

from cleanova.schemas.playback import MediaEvent
from cleanova.schemas.token import UserOut
from cleanova.schemas.video_progress import ProgressResponse


def test_user_out_reads_orm_attributes():
    user = SimpleNamespace(id=5, email="fajar@cleanova.id", full_name="Fajar", is_subscribed=True)

    out = UserOut.model_validate(user)

    assert out.email == "fajar@cleanova.id"
    assert out.is_subscribed is True


@pytest.mark.parametrize("model,field", [
    (MediaEvent, "generation"),
    (ProgressResponse, "percent"),
])
def test_schema_examples_published(model, field):
    schema = model.model_json_schema()
    assert field in schema["example"]


@pytest.mark.parametrize("model", [MediaEvent, ProgressResponse, UserOut])
def test_models_use_config_dict(model):
    assert "Config" not in vars(model)
