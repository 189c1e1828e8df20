from dataclasses import dataclass

import pytest

from src.sql_deployment.steps.base import DatabaseScopedStep, FailurePolicy, Step
from src.sql_deployment.steps.database import DatabaseExtendedPropertyStep, DatabaseStep


@dataclass(frozen=True)
class NoOpStep(Step):
    def execute(self, context):
        pass


def test_base_step_cannot_be_planned_without_execute():
    with pytest.raises(TypeError, match="abstract"):
        Step(instance_name="SRV1")
    with pytest.raises(TypeError, match="abstract"):
        DatabaseScopedStep(instance_name="SRV1", database_name="Orders")


def test_base_step_defaults_to_always_execute_and_fatal_failures(execute_context):
    step = NoOpStep(instance_name="SRV1")

    assert step.should_execute(execute_context) is True
    assert step.failure_policy is FailurePolicy.FAIL
    assert step.description == "NoOpStep on SRV1"


# ---------- DatabaseStep ----------


def test_database_step_executes_when_database_missing(execute_context, sql_server):
    step = DatabaseStep(instance_name="SRV1", database_name="Orders")

    assert step.should_execute(execute_context) is True
    step.execute(execute_context)

    assert "Orders" in sql_server.databases
    assert sql_server.mutations == [("CREATE DATABASE", {"name": "Orders"})]
    assert step.should_execute(execute_context) is False


def test_database_step_probe_is_a_pure_read(execute_context, sql_server):
    step = DatabaseStep(instance_name="SRV1", database_name="Orders")

    first = step.should_execute(execute_context)
    second = step.should_execute(execute_context)

    assert first == second
    assert sql_server.mutations == []
    assert sql_server.open_connections == 0


def test_database_step_description_names_target():
    step = DatabaseStep(instance_name="SRV1", database_name="Orders")

    assert step.description == "DatabaseStep on SRV1/Orders"


# ---------- DatabaseExtendedPropertyStep ----------


@pytest.fixture
def orders(sql_server):
    return sql_server.add_database("Orders")


def make_property(value="sales") -> DatabaseExtendedPropertyStep:
    return DatabaseExtendedPropertyStep(
        instance_name="SRV1", database_name="Orders", name="Owner", value=value
    )


def test_property_probe_true_when_database_missing(execute_context, sql_server):
    assert make_property().should_execute(execute_context) is True
    assert sql_server.open_connections == 0


def test_property_is_added_when_absent(execute_context, sql_server, orders):
    step = make_property()

    assert step.should_execute(execute_context) is True
    step.execute(execute_context)

    assert orders.extended_properties == {"Owner": "sales"}
    assert sql_server.mutations == [("sp_addextendedproperty", {"name": "Owner", "value": "sales"})]
    assert step.should_execute(execute_context) is False


def test_property_is_updated_when_value_differs(execute_context, sql_server, orders):
    orders.extended_properties["Owner"] = "finance"
    step = make_property()

    assert step.should_execute(execute_context) is True
    step.execute(execute_context)

    assert orders.extended_properties == {"Owner": "sales"}
    assert sql_server.mutations == [
        ("sp_updateextendedproperty", {"name": "Owner", "value": "sales"})
    ]


def test_property_description_includes_name():
    assert make_property().description == "DatabaseExtendedPropertyStep 'Owner' on SRV1/Orders"
