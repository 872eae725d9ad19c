"""
Unit tests for invocation request validation
"""

import pytest

from image_pipeline import (
    InvocationRequest,
    ProcessingMode,
    RequestValidationError,
    validate_request,
)


def valid_event(**overrides):
    event = {
        'processing_mode': 'fit',
        'source_bucket': 'images',
        'source_key': 'uploads/photo.jpg',
        'destination_prefix': 'out/2024',
        'versions': [{'width': 400}],
    }
    event.update(overrides)
    return event


def error_fields(exc_info):
    return {e['field'] for e in exc_info.value.errors}


class TestAcceptsValidRequests:
    """Tests for requests that conform to the schema"""

    def test_full_request(self):
        """Test a request with every field"""
        request = validate_request(valid_event())

        assert isinstance(request, InvocationRequest)
        assert request.processing_mode is ProcessingMode.FIT
        assert request.source_bucket == 'images'
        assert request.source_key == 'uploads/photo.jpg'
        assert request.destination_prefix == 'out/2024'
        assert request.versions == [{'width': 400}]

    def test_versions_optional(self):
        """Test that versions may be omitted"""
        event = valid_event()
        del event['versions']

        assert validate_request(event).versions is None

    def test_fill_mode(self):
        """Test the second supported mode"""
        assert validate_request(valid_event(processing_mode='fill')).processing_mode is ProcessingMode.FILL

    def test_version_elements_are_opaque(self):
        """Test that element shape is not checked here"""
        request = validate_request(valid_event(versions=['anything', 3, {'x': 1}]))
        assert request.versions == ['anything', 3, {'x': 1}]

    def test_request_is_frozen(self):
        """Test immutability after validation"""
        request = validate_request(valid_event())
        with pytest.raises(Exception):
            request.source_key = 'other.jpg'


class TestRejectsInvalidRequests:
    """Tests for requests that violate the schema"""

    @pytest.mark.parametrize('field', [
        'processing_mode', 'source_bucket', 'source_key', 'destination_prefix',
    ])
    def test_missing_required_field(self, field):
        """Test each required field"""
        event = valid_event()
        del event[field]

        with pytest.raises(RequestValidationError) as exc_info:
            validate_request(event)

        assert field in error_fields(exc_info)
        assert exc_info.value.errors[0]['type'] == 'missing'

    def test_unknown_field(self):
        """Test that extra properties are rejected"""
        with pytest.raises(RequestValidationError) as exc_info:
            validate_request(valid_event(callback_url='http://example.com'))

        assert error_fields(exc_info) == {'callback_url'}
        assert exc_info.value.errors[0]['type'] == 'extra_forbidden'

    def test_unsupported_mode(self):
        """Test processing_mode allow-list"""
        with pytest.raises(RequestValidationError) as exc_info:
            validate_request(valid_event(processing_mode='processImage5'))

        assert error_fields(exc_info) == {'processing_mode'}

    @pytest.mark.parametrize('field', ['source_bucket', 'source_key', 'destination_prefix'])
    def test_empty_string(self, field):
        """Test min length of identifier strings"""
        with pytest.raises(RequestValidationError) as exc_info:
            validate_request(valid_event(**{field: ''}))

        assert exc_info.value.errors[0]['type'] == 'string_too_short'

    def test_versions_must_be_a_list(self):
        """Test versions sequence type"""
        with pytest.raises(RequestValidationError) as exc_info:
            validate_request(valid_event(versions={'width': 400}))

        assert error_fields(exc_info) == {'versions'}

    def test_versions_null_rejected(self):
        """Test that versions, when present, cannot be null"""
        with pytest.raises(RequestValidationError) as exc_info:
            validate_request(valid_event(versions=None))

        assert error_fields(exc_info) == {'versions'}

    def test_non_string_key(self):
        """Test that numbers are not coerced to strings"""
        with pytest.raises(RequestValidationError):
            validate_request(valid_event(source_key=123))

    def test_reports_every_violation(self):
        """Test that all violations are collected, not just the first"""
        event = {
            'processing_mode': 'unknown',
            'source_bucket': '',
            'extra': True,
        }

        with pytest.raises(RequestValidationError) as exc_info:
            validate_request(event)

        assert error_fields(exc_info) == {
            'processing_mode', 'source_bucket', 'source_key', 'destination_prefix', 'extra',
        }

    @pytest.mark.parametrize('event', [None, 'text', ['processing_mode']])
    def test_event_must_be_an_object(self, event):
        """Test non-object payloads"""
        with pytest.raises(RequestValidationError) as exc_info:
            validate_request(event)

        assert exc_info.value.errors

    def test_error_message_and_stage(self):
        """Test error rendering"""
        with pytest.raises(RequestValidationError) as exc_info:
            validate_request(valid_event(source_key=''))

        error = exc_info.value
        assert error.stage == 'validating'
        assert str(error).startswith('validating: source_key')
