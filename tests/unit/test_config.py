"""
Unit tests for the process-wide configuration store
"""

import pytest

from image_pipeline import ConfigValidationError, PipelineConfig, get_config, set_config
from image_pipeline.constants import DEFAULT_WORKSPACE_ROOT


class TestDefaults:
    """Tests for the default configuration"""

    def test_default_workspace_root(self):
        """Test the fixed temp-area default"""
        assert get_config().workspace_root == DEFAULT_WORKSPACE_ROOT
        assert DEFAULT_WORKSPACE_ROOT == '/tmp/images/'

    def test_config_is_immutable(self):
        """Test that a config value cannot be changed in place"""
        config = get_config()
        with pytest.raises(Exception):
            config.workspace_root = '/elsewhere'


class TestSetConfig:
    """Tests for set_config function"""

    def test_overrides_workspace_root(self):
        """Test that a valid root replaces the stored one"""
        result = set_config({'workspace_root': '/mnt/scratch'})

        assert result.workspace_root == '/mnt/scratch'
        assert get_config().workspace_root == '/mnt/scratch'

    def test_empty_options_keep_previous_root(self):
        """Test that an absent field leaves the prior value untouched"""
        set_config({'workspace_root': '/mnt/scratch'})
        result = set_config({})

        assert result.workspace_root == '/mnt/scratch'

    def test_rejects_empty_root(self):
        """Test minLength violation keeps the prior root"""
        set_config({'workspace_root': '/mnt/scratch'})

        with pytest.raises(ConfigValidationError) as exc_info:
            set_config({'workspace_root': ''})

        assert get_config().workspace_root == '/mnt/scratch'
        errors = exc_info.value.errors
        assert len(errors) == 1
        assert errors[0]['field'] == 'workspace_root'
        assert errors[0]['type'] == 'string_too_short'

    def test_rejects_unknown_field(self):
        """Test that only workspace_root is accepted"""
        with pytest.raises(ConfigValidationError) as exc_info:
            set_config({'upload_folder': '/tmp/x'})

        assert exc_info.value.errors[0]['type'] == 'extra_forbidden'
        assert get_config().workspace_root == DEFAULT_WORKSPACE_ROOT

    def test_rejects_non_string_root(self):
        """Test type checking of workspace_root"""
        with pytest.raises(ConfigValidationError):
            set_config({'workspace_root': 42})

    def test_rejects_null_root(self):
        """Test that an explicit None is not treated as absent"""
        with pytest.raises(ConfigValidationError):
            set_config({'workspace_root': None})

    def test_rejects_non_mapping(self):
        """Test that options must be an object"""
        with pytest.raises(ConfigValidationError):
            set_config(['workspace_root'])

    def test_error_reports_stage(self):
        """Test error annotation for logging"""
        with pytest.raises(ConfigValidationError) as exc_info:
            set_config({'workspace_root': ''})

        payload = exc_info.value.to_dict()
        assert payload['errorType'] == 'ConfigValidationError'
        assert payload['stage'] == 'configuring'
        assert payload['errors']


class TestPipelineConfig:
    """Tests for the PipelineConfig model"""

    def test_explicit_root(self):
        assert PipelineConfig(workspace_root='/data').workspace_root == '/data'

    def test_rejects_empty_root(self):
        with pytest.raises(Exception):
            PipelineConfig(workspace_root='')
