"""Basic tests for semsearch."""

import pytest


def test_version():
    """Test version is set."""
    from semsearch import __version__

    assert __version__ == "0.1.0"


def test_public_api():
    """Test top-level exports resolve."""
    import semsearch

    assert semsearch.SearchOrchestrator is not None
    assert semsearch.FusionWeights().to_dict() == {"text": 0.7, "image": 0.3}
    assert callable(semsearch.create_app)

    with pytest.raises(AttributeError):
        semsearch.does_not_exist


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
