"""Integration tests running the generated client against a mock transport."""

import importlib
import json
import sys
from datetime import datetime, timezone

import httpx
import pytest

from clientforge.codegen import Codegen
from clientforge.config import DocumentConfig

from .fixtures import COMPUTE_API_SPEC, get_spec_as_json

PACKAGE = 'compute_client'

INSTANCE = {
    'id': '0b9f7e3c-25d8-4a93-8a2d-3e3a4b8c8f10',
    'name': 'web',
    'description': 'web server',
    'ncpus': 2,
    'run_state': 'running',
    'time_created': '2024-08-21T10:00:00Z',
}


@pytest.fixture(scope='module')
def generated(tmp_path_factory):
    """Generate the compute client and import it."""
    root = tmp_path_factory.mktemp('generated')
    source = root / 'openapi.json'
    source.write_text(get_spec_as_json(COMPUTE_API_SPEC))
    Codegen(
        DocumentConfig(source=str(source), output=str(root / PACKAGE), env_prefix='COMPUTE')
    ).generate()

    sys.path.insert(0, str(root))
    try:
        package = importlib.import_module(PACKAGE)
        yield {
            'package': package,
            'models': importlib.import_module(f'{PACKAGE}.models'),
            'paths': importlib.import_module(f'{PACKAGE}.paths'),
        }
    finally:
        sys.path.remove(str(root))
        for name in [name for name in sys.modules if name.split('.')[0] == PACKAGE]:
            del sys.modules[name]


def _client(generated, handler):
    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    return generated['package'].Client(
        host='api.example.com', token='secret', http_client=http_client
    )


class TestModels:
    """Tests for the generated data types."""

    def test_record(self, generated):
        """Test decoding a record with an enum field."""
        models = generated['models']

        instance = models.Instance.model_validate(INSTANCE)
        assert instance.run_state is models.InstanceState.RUNNING
        assert instance.time_created.year == 2024

    def test_enum_constants(self, generated):
        """Test the enum constants and collection."""
        models = generated['models']

        assert models.InstanceStateRunning == 'running'
        assert models.InstanceStates == [
            models.InstanceState.CREATING,
            models.InstanceState.RUNNING,
            models.InstanceState.STOPPED,
        ]

    def test_union_variant(self, generated):
        """Test narrowing a merged union value to its variant."""
        models = generated['models']

        disk = models.DiskSource.model_validate({'type': 'image', 'image_id': 'abc'})
        variant = disk.as_variant()

        assert isinstance(variant, models.DiskSourceImage)
        assert variant.image_id == 'abc'

    def test_union_without_tag(self, generated):
        """Test that a value matching no variant fails to narrow."""
        models = generated['models']

        shape = models.Shape.model_validate({'kind': 'circle', 'radius': 1.0})
        with pytest.raises(ValueError):
            shape.as_variant()


class TestOperations:
    """Tests for the generated operation functions."""

    def test_view(self, generated):
        """Test a GET with a path parameter."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=INSTANCE)

        with _client(generated, handler) as client:
            instance = generated['paths'].instance_view(client, instance='my instance')

        assert instance.name == 'web'
        request = seen[0]
        assert request.method == 'GET'
        assert request.url.raw_path.startswith(b'/v1/instances/my%20instance')
        assert 'project' not in request.url.params
        assert request.headers['Authorization'] == 'Bearer secret'
        assert request.headers['API-Version'] == '20240821.0'
        assert request.headers['User-Agent'].startswith('clientforge/v')

    def test_query_values(self, generated):
        """Test that enum, number and empty query values are rendered."""
        models = generated['models']
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={'items': [], 'next_page': None})

        with _client(generated, handler) as client:
            generated['paths'].instance_list(
                client,
                project='p1',
                limit=10,
                page_token='',
                sort_by=models.NameOrIdSortMode.NAME_ASCENDING,
            )

        params = seen[0].url.params
        assert params['project'] == 'p1'
        assert params['limit'] == '10'
        assert params['sort_by'] == 'name_ascending'
        assert 'page_token' not in params

    def test_all_pages(self, generated):
        """Test that every page is collected."""
        pages = {
            None: {'items': [INSTANCE], 'next_page': 'token-2'},
            'token-2': {'items': [dict(INSTANCE, name='db')], 'next_page': None},
        }
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=pages[request.url.params.get('page_token')])

        with _client(generated, handler) as client:
            instances = generated['paths'].instance_list_all_pages(client, project='p1')

        assert [instance.name for instance in instances] == ['web', 'db']
        assert [request.url.params['limit'] for request in seen] == ['100', '100']

    def test_create(self, generated):
        """Test that JSON bodies are sent with their wire names."""
        models = generated['models']
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(201, json=INSTANCE)

        body = models.InstanceCreate(
            name='web',
            description='web server',
            ncpus=2,
            boot_disk=models.DiskSource(type='image', image_id='abc'),
        )
        with _client(generated, handler) as client:
            generated['paths'].instance_create(client, project='p1', body=body)

        request = seen[0]
        assert request.method == 'POST'
        assert request.headers['Content-Type'] == 'application/json'
        assert json.loads(request.content) == {
            'name': 'web',
            'description': 'web server',
            'ncpus': 2,
            'boot_disk': {'type': 'image', 'image_id': 'abc'},
        }

    def test_upload(self, generated):
        """Test that raw bodies are sent as given."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(204)

        with _client(generated, handler) as client:
            result = generated['paths'].image_upload(client, image='disk', body=b'\x00\x01')

        assert result is None
        assert seen[0].content == b'\x00\x01'
        assert seen[0].headers['Content-Type'] == 'application/octet-stream'

    def test_timestamp_and_boolean_parameters(self, generated):
        """Test the URL text of timestamps and booleans."""
        seen = []

        def handler(request):
            seen.append(request)
            if request.url.path.endswith('/start'):
                return httpx.Response(202, json=INSTANCE)
            return httpx.Response(200, json={'value': 1.5})

        start = datetime(2024, 8, 21, 10, 0, tzinfo=timezone.utc)
        with _client(generated, handler) as client:
            metric = generated['paths'].system_metric(
                client, metric_name='cpu', start_time=start
            )
            generated['paths'].instance_start(client, instance='web', force=True)

        assert metric.value == 1.5
        assert seen[0].url.params['start_time'] == '2024-08-21T10:00:00+00:00'
        assert seen[1].url.params['force'] == 'true'


class TestErrors:
    """Tests for failed calls."""

    def test_required_arguments(self, generated):
        """Test that missing required arguments are reported together."""
        package = generated['package']

        with _client(generated, lambda request: httpx.Response(500)) as client:
            with pytest.raises(package.ValidationError) as exc_info:
                generated['paths'].instance_create(client, project='', body=None)

        assert exc_info.value.errors == [
            'required value for body is nil',
            'required value for project is an empty string',
        ]

    def test_api_error(self, generated):
        """Test that structured error bodies raise APIError."""
        package = generated['package']

        def handler(request):
            return httpx.Response(
                404,
                json={'error_code': 'ObjectNotFound', 'message': 'not found', 'request_id': 'r1'},
            )

        with _client(generated, handler) as client:
            with pytest.raises(package.APIError) as exc_info:
                generated['paths'].instance_view(client, instance='web')

        assert exc_info.value.status_code == 404
        assert exc_info.value.error_response.error_code == 'ObjectNotFound'

    def test_http_error(self, generated):
        """Test that unstructured error bodies raise HTTPError."""
        package = generated['package']

        with _client(generated, lambda request: httpx.Response(502, text='bad gateway')) as client:
            with pytest.raises(package.HTTPError) as exc_info:
                generated['paths'].instance_delete(client, instance='web')

        assert exc_info.value.status_code == 502
        assert exc_info.value.body == 'bad gateway'


class TestClient:
    """Tests for the generated client class."""

    def test_environment(self, generated, monkeypatch):
        """Test that host and token default to the environment."""
        monkeypatch.setenv('COMPUTE_HOST', 'compute.example.com')
        monkeypatch.setenv('COMPUTE_TOKEN', 'from-env')

        client = generated['package'].Client()
        assert client.host == 'https://compute.example.com/'
        assert client.token == 'from-env'
        client.close()

    def test_missing_configuration(self, generated, monkeypatch):
        """Test that every configuration problem is reported."""
        monkeypatch.delenv('COMPUTE_HOST', raising=False)
        monkeypatch.delenv('COMPUTE_TOKEN', raising=False)

        with pytest.raises(ValueError) as exc_info:
            generated['package'].Client()

        message = str(exc_info.value)
        assert 'failed parsing host address: host address is empty' in message
        assert 'token is required' in message

    def test_versions(self, generated):
        """Test the exported version constants."""
        package = generated['package']

        assert package.OPENAPI_VERSION == '20240821.0'
        assert package.SDK_VERSION.startswith('v')
