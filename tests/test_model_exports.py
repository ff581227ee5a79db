from safe_edit import models
from safe_edit.models import EditBatch, SubstringEdit
from safe_edit.models.edit_models import SubstringEdit as CoreSubstringEdit


def test_public_model_exports():
    assert SubstringEdit is CoreSubstringEdit
    for name in models.__all__:
        assert hasattr(models, name)
    assert isinstance(
        EditBatch(edits=[{"type": "string", "file": "a.txt", "old": "x", "new": "y"}]),
        EditBatch,
    )
