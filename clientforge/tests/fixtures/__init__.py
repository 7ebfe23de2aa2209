"""Test fixtures for clientforge tests.

This module provides sample OpenAPI documents and utilities for testing
the code generation functionality.
"""

import copy
import json

import yaml

# Minimal OpenAPI 3.0 document for basic testing
MINIMAL_OPENAPI_SPEC = {
    'openapi': '3.0.3',
    'info': {'title': 'Minimal API', 'version': '1.0.0'},
    'paths': {},
}

# A compute API in the style the generator was built for: tagged operations,
# ``NameOrId`` path parameters, cursor pagination and tagged one-ofs.
COMPUTE_API_SPEC = {
    'openapi': '3.0.3',
    'info': {
        'title': 'Compute API',
        'version': '20240821.0',
        'description': 'API for managing virtual machine instances',
    },
    'paths': {
        '/v1/instances': {
            'get': {
                'tags': ['instances'],
                'operationId': 'instance_list',
                'summary': 'List instances',
                'parameters': [
                    {
                        'in': 'query',
                        'name': 'limit',
                        'description': 'Maximum number of items returned by a single call',
                        'schema': {'type': 'integer', 'format': 'uint32', 'nullable': True},
                    },
                    {
                        'in': 'query',
                        'name': 'page_token',
                        'description': 'Token returned by previous call to retrieve the subsequent page',
                        'schema': {'type': 'string', 'nullable': True},
                    },
                    {
                        'in': 'query',
                        'name': 'project',
                        'description': 'Name or ID of the project',
                        'required': True,
                        'schema': {'$ref': '#/components/schemas/NameOrId'},
                    },
                    {
                        'in': 'query',
                        'name': 'sort_by',
                        'schema': {'$ref': '#/components/schemas/NameOrIdSortMode'},
                    },
                ],
                'responses': {
                    '200': {
                        'description': 'successful operation',
                        'content': {
                            'application/json': {
                                'schema': {
                                    '$ref': '#/components/schemas/InstanceResultsPage'
                                }
                            }
                        },
                    },
                    '4XX': {'$ref': '#/components/responses/Error'},
                },
            },
            'post': {
                'tags': ['instances'],
                'operationId': 'instance_create',
                'summary': 'Create instance',
                'parameters': [
                    {
                        'in': 'query',
                        'name': 'project',
                        'description': 'Name or ID of the project',
                        'required': True,
                        'schema': {'$ref': '#/components/schemas/NameOrId'},
                    }
                ],
                'requestBody': {
                    'required': True,
                    'content': {
                        'application/json': {
                            'schema': {'$ref': '#/components/schemas/InstanceCreate'}
                        }
                    },
                },
                'responses': {
                    '201': {
                        'description': 'successful creation',
                        'content': {
                            'application/json': {
                                'schema': {'$ref': '#/components/schemas/Instance'}
                            }
                        },
                    }
                },
            },
        },
        '/v1/instances/{instance}': {
            'get': {
                'tags': ['instances'],
                'operationId': 'instance_view',
                'summary': 'Fetch instance',
                'parameters': [
                    {
                        'in': 'path',
                        'name': 'instance',
                        'description': 'Name or ID of the instance',
                        'required': True,
                        'schema': {'$ref': '#/components/schemas/NameOrId'},
                    },
                    {
                        'in': 'query',
                        'name': 'project',
                        'description': 'Name or ID of the project',
                        'schema': {'$ref': '#/components/schemas/NameOrId'},
                    },
                ],
                'responses': {
                    '200': {
                        'description': 'successful operation',
                        'content': {
                            'application/json': {
                                'schema': {'$ref': '#/components/schemas/Instance'}
                            }
                        },
                    }
                },
            },
            'delete': {
                'tags': ['instances'],
                'operationId': 'instance_delete',
                'summary': 'Delete instance',
                'parameters': [
                    {
                        'in': 'path',
                        'name': 'instance',
                        'required': True,
                        'schema': {'$ref': '#/components/schemas/NameOrId'},
                    }
                ],
                'responses': {'204': {'description': 'successful deletion'}},
            },
        },
        '/v1/instances/{instance}/start': {
            'post': {
                'tags': ['instances'],
                'operationId': 'instance_start',
                'summary': 'Boot instance',
                'parameters': [
                    {
                        'in': 'path',
                        'name': 'instance',
                        'required': True,
                        'schema': {'$ref': '#/components/schemas/NameOrId'},
                    },
                    {
                        'in': 'query',
                        'name': 'force',
                        'schema': {'type': 'boolean'},
                    },
                ],
                'responses': {
                    '202': {
                        'description': 'successfully enqueued operation',
                        'content': {
                            'application/json': {
                                'schema': {'$ref': '#/components/schemas/Instance'}
                            }
                        },
                    }
                },
            }
        },
        '/v1/images/{image}/upload': {
            'put': {
                'tags': ['images'],
                'operationId': 'image_upload',
                'summary': 'Upload image contents',
                'parameters': [
                    {
                        'in': 'path',
                        'name': 'image',
                        'required': True,
                        'schema': {'type': 'string'},
                    }
                ],
                'requestBody': {
                    'required': True,
                    'content': {
                        'application/octet-stream': {
                            'schema': {'type': 'string', 'format': 'binary'}
                        }
                    },
                },
                'responses': {'204': {'description': 'resource updated'}},
            }
        },
        '/v1/system/metrics/{metric_name}': {
            'get': {
                'tags': ['metrics'],
                'operationId': 'system_metric',
                'summary': 'View metrics',
                'parameters': [
                    {
                        'in': 'path',
                        'name': 'metric_name',
                        'required': True,
                        'schema': {'type': 'string'},
                    },
                    {
                        'in': 'query',
                        'name': 'start_time',
                        'required': True,
                        'schema': {'type': 'string', 'format': 'date-time'},
                    },
                    {
                        'in': 'query',
                        'name': 'count',
                        'schema': {'type': 'integer'},
                    },
                ],
                'responses': {
                    '200': {
                        'description': 'successful operation',
                        'content': {
                            'application/json': {
                                'schema': {
                                    'type': 'object',
                                    'properties': {
                                        'value': {'type': 'number'},
                                        'timestamp': {'type': 'string', 'format': 'date-time'},
                                    },
                                }
                            }
                        },
                    }
                },
            }
        },
        '/v1/ping': {
            'get': {
                'tags': ['hidden'],
                'operationId': 'ping',
                'responses': {'200': {'description': 'pong'}},
            }
        },
        '/v1/untagged': {
            'get': {
                'operationId': 'untagged_call',
                'responses': {'200': {'description': 'ok'}},
            }
        },
    },
    'components': {
        'schemas': {
            'Name': {
                'title': 'A name unique within the parent collection',
                'description': 'Names must begin with a lower case ASCII letter.',
                'type': 'string',
                'pattern': '^[a-z]([a-zA-Z0-9-]*[a-zA-Z0-9]+)?$',
            },
            'NameOrId': {
                'oneOf': [
                    {'title': 'id', 'allOf': [{'type': 'string', 'format': 'uuid'}]},
                    {'title': 'name', 'allOf': [{'$ref': '#/components/schemas/Name'}]},
                ]
            },
            'NameOrIdSortMode': {
                'description': 'Supported set of sort modes for scanning by name or id',
                'oneOf': [
                    {
                        'description': 'sort in increasing order of "name"',
                        'type': 'string',
                        'enum': ['name_ascending'],
                    },
                    {
                        'description': 'sort in decreasing order of "name"',
                        'type': 'string',
                        'enum': ['name_descending'],
                    },
                    {
                        'description': 'sort in increasing order of "id"',
                        'type': 'string',
                        'enum': ['id_ascending'],
                    },
                ],
            },
            'InstanceState': {
                'description': 'Running state of an Instance (primarily: booted or stopped)',
                'type': 'string',
                'enum': ['running', 'creating', 'stopped'],
            },
            'Instance': {
                'description': 'View of an Instance',
                'type': 'object',
                'properties': {
                    'id': {
                        'description': 'unique, immutable, system-controlled identifier',
                        'type': 'string',
                        'format': 'uuid',
                    },
                    'name': {'$ref': '#/components/schemas/Name'},
                    'description': {'type': 'string'},
                    'ncpus': {'type': 'integer'},
                    'run_state': {'$ref': '#/components/schemas/InstanceState'},
                    'time_created': {
                        'description': 'timestamp when this resource was created',
                        'type': 'string',
                        'format': 'date-time',
                    },
                },
                'required': ['description', 'id', 'name', 'ncpus', 'run_state'],
            },
            'InstanceCreate': {
                'description': 'Create-time parameters for an Instance',
                'type': 'object',
                'properties': {
                    'name': {'$ref': '#/components/schemas/Name'},
                    'description': {'type': 'string'},
                    'ncpus': {'type': 'integer'},
                    'boot_disk': {'$ref': '#/components/schemas/DiskSource'},
                },
                'required': ['description', 'name', 'ncpus'],
            },
            'InstanceResultsPage': {
                'description': 'A single page of results',
                'type': 'object',
                'properties': {
                    'items': {
                        'description': 'list of items on this page of results',
                        'type': 'array',
                        'items': {'$ref': '#/components/schemas/Instance'},
                    },
                    'next_page': {
                        'description': 'token used to fetch the next page of results (if any)',
                        'type': 'string',
                        'nullable': True,
                    },
                },
                'required': ['items'],
            },
            'DiskSource': {
                'description': 'Different sources for a disk',
                'oneOf': [
                    {
                        'description': 'Create a disk from a disk snapshot',
                        'type': 'object',
                        'properties': {
                            'snapshot_id': {'type': 'string', 'format': 'uuid'},
                            'type': {'type': 'string', 'enum': ['snapshot']},
                        },
                        'required': ['snapshot_id', 'type'],
                    },
                    {
                        'description': 'Create a disk from an image',
                        'type': 'object',
                        'properties': {
                            'image_id': {'type': 'string', 'format': 'uuid'},
                            'type': {'type': 'string', 'enum': ['image']},
                        },
                        'required': ['image_id', 'type'],
                    },
                ],
            },
            'Shape': {
                'oneOf': [
                    {
                        'type': 'object',
                        'properties': {
                            'kind': {'type': 'string', 'enum': ['circle', 'round']},
                            'radius': {'type': 'number'},
                        },
                    },
                    {
                        'type': 'object',
                        'properties': {
                            'kind': {'type': 'string', 'enum': ['square']},
                            'side': {'type': 'number'},
                        },
                    },
                ]
            },
            'Error': {
                'description': 'Error information from a response.',
                'type': 'object',
                'properties': {
                    'error_code': {'type': 'string'},
                    'message': {'type': 'string'},
                    'request_id': {'type': 'string'},
                },
                'required': ['message', 'request_id'],
            },
        },
        'responses': {
            'Error': {
                'description': 'Error',
                'content': {
                    'application/json': {'schema': {'$ref': '#/components/schemas/Error'}}
                },
            }
        },
    },
}


def get_spec(spec: dict) -> dict:
    """Return a deep copy of ``spec`` that tests may modify."""
    return copy.deepcopy(spec)


def get_spec_as_json(spec: dict) -> str:
    """Convert a spec dict to a JSON string."""
    return json.dumps(spec, indent=2)


def get_spec_as_yaml(spec: dict) -> str:
    """Convert a spec dict to a YAML string."""
    return yaml.safe_dump(spec, sort_keys=False)


def load_document(spec: dict):
    """Validate ``spec`` into the document model."""
    from clientforge.openapi import OpenAPI

    return OpenAPI.model_validate(get_spec(spec))


def document_with_schemas(schemas: dict, **extra) -> dict:
    """A minimal document whose components hold ``schemas``."""
    spec = get_spec(MINIMAL_OPENAPI_SPEC)
    spec['components'] = {'schemas': schemas}
    spec.update(extra)
    return spec
