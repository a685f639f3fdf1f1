import pytest
from unittest.mock import Mock
from modules.base.base_engine import BaseEngine

# Concrete implementation for testing purposes
class ConcreteTestEngine(BaseEngine):
    def _get_engine_directory_name(self) -> str:
        return "99_TEST_ENGINE"

    def execute(self, *args, **kwargs):
        pass

@pytest.fixture
def mock_logger():
    return Mock()

@pytest.fixture
def base_config(tmp_path):
    return {'outputs': {'base_results_dir': str(tmp_path)}}

def test_directory_created(base_config, mock_logger, tmp_path):
    engine = ConcreteTestEngine(base_config, mock_logger)

    expected_dir = tmp_path / "99_TEST_ENGINE"
    assert engine.output_dir == expected_dir
    assert expected_dir.is_dir()
    assert engine.writes_enabled
    mock_logger.info.assert_called_with(f"Output directory for ConcreteTestEngine: {expected_dir}")

def test_skip_dir_creation(base_config, mock_logger, tmp_path):
    base_config['outputs']['skip_dir_creation'] = True
    engine = ConcreteTestEngine(base_config, mock_logger)

    assert not engine.writes_enabled
    assert not (tmp_path / "99_TEST_ENGINE").exists()
    mock_logger.info.assert_not_called()

def test_abstract_engine_cannot_be_instantiated(base_config, mock_logger):
    with pytest.raises(TypeError):
        BaseEngine(base_config, mock_logger)
