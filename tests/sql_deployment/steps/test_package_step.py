from dataclasses import replace

import pytest

from src.sql_deployment.errors import ExecutionError
from src.sql_deployment.server.ports import PackageDeployment
from src.sql_deployment.steps.package import DatabasePackageStep


def make_step() -> DatabasePackageStep:
    return DatabasePackageStep(
        instance_name="SRV1",
        database_name="Orders",
        source_path="/packages/orders.dacpac",
        properties=(("BlockOnPossibleDataLoss", "True"),),
        variables=(("Environment", "prod"),),
    )


def test_package_step_always_executes(execute_context, sql_server):
    assert make_step().should_execute(execute_context) is True
    assert sql_server.opened == 0


def test_package_step_hands_deployment_to_deployer(execute_context, package_deployer):
    make_step().execute(execute_context)

    assert package_deployer.deployments == [
        PackageDeployment(
            instance_name="SRV1",
            database_name="Orders",
            source_path="/packages/orders.dacpac",
            properties=(("BlockOnPossibleDataLoss", "True"),),
            variables=(("Environment", "prod"),),
        )
    ]


def test_package_step_without_deployer_fails(execute_context):
    context = replace(execute_context, package_deployer=None)

    with pytest.raises(ExecutionError, match="No package deployer") as info:
        make_step().execute(context)

    assert info.value.instance_name == "SRV1"


def test_package_step_deployer_error_propagates(execute_context, package_deployer):
    package_deployer.error = ExecutionError("Publishing failed.", instance_name="SRV1")

    with pytest.raises(ExecutionError, match="Publishing failed."):
        make_step().execute(execute_context)
