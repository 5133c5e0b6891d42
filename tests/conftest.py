"""Shared fixtures for oaslint tests."""

import pytest

from oaslint.models.rule import RuleDefinition
from oaslint.parser.document import parse

PETSTORE_YAML = """openapi: 3.0.1
info:
  title: Pet Store
  version: 1.0.0
servers:
  - url: https://api.example.com/v1
paths:
  /v1/pets:
    get:
      summary: List pets
      parameters:
        - name: limit
          in: query
          schema:
            type: integer
            default: 20
      responses:
        '200':
          description: Pet list
          content:
            application/json:
              schema:
                $ref: '#/components/schemas/PetList'
    post:
      summary: Create a pet
      requestBody:
        content:
          application/json:
            schema:
              $ref: '#/components/schemas/Pet'
      responses:
        '201':
          description: Created
  /v1/pets/{pet_id}:
    get:
      summary: Show a pet
      responses:
        '200':
          description: A pet
          content:
            application/json:
              schema:
                $ref: '#/components/schemas/Pet'
components:
  schemas:
    Pet:
      type: object
      properties:
        name:
          type: string
        created_at:
          type: string
        updated_at:
          type: string
    PetList:
      type: object
      properties:
        count:
          type: integer
        pets:
          type: array
          items:
            $ref: '#/components/schemas/Pet'
"""


def build_rule(check_name: str, rule_id: str | None = None, severity: str = "medium",
               message: str = "Rule violated.", params: dict | None = None, **fields) -> RuleDefinition:
    """Rule definition in catalog record form."""
    record = {
        "id": rule_id or check_name,
        "message": message,
        "severity": severity,
        "status": "implemented",
        "call": {"function": check_name, "functionParams": params or {}},
    }
    record.update(fields)
    return RuleDefinition.model_validate(record)


@pytest.fixture
def make_rule():
    """Factory building rule definitions."""
    return build_rule


@pytest.fixture
def petstore_raw():
    """A small, clean OpenAPI document."""
    return PETSTORE_YAML


@pytest.fixture
def petstore(petstore_raw):
    """The parsed pet store document."""
    return parse(petstore_raw)
