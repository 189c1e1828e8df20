from __future__ import annotations

import pytest

from src.sql_deployment.cancellation import CancellationToken
from src.sql_deployment.context import CompileContext, ExecuteContext
from src.sql_deployment.desired.models import Database, Instance
from src.sql_deployment.errors import ExecutionCancelledError
from src.sql_deployment.execute.ports import RunReport, StepStatus
from src.sql_deployment.expressions import Expression as E
from src.sql_deployment.orchestrate.orchestrator import Orchestrator
from src.sql_deployment.server.sqlpackage import SqlPackageDeployer

# ---------- fakes ----------


class FakeRunner:
    def __init__(self) -> None:
        self.calls: list[tuple[object, CompileContext, ExecuteContext]] = []

    def run(self, root, compile_context, execute_context) -> RunReport:
        self.calls.append((root, compile_context, execute_context))
        return RunReport(results=())


class FakeLogger:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def _record(self, msg: str, *args) -> None:
        self.messages.append(msg % args if args else msg)

    info = warning = error = debug = _record


# ---------- tests ----------


def test_deploy_seeds_contexts_and_delegates_to_runner(connections, package_deployer, directory_access):
    runner = FakeRunner()
    logger = FakeLogger()
    token = CancellationToken()
    orchestrator = Orchestrator(
        connections,
        runner=runner,
        package_deployer=package_deployer,
        directory_access=directory_access,
        logger=logger,
    )
    root = Database(name=E("Orders"))

    orchestrator.deploy(root, instance_name="SRV1", variables={"env": "prod"}, cancellation=token)

    (called_root, compile_context, execute_context), = runner.calls
    assert called_root is root
    assert compile_context.instance_name == "SRV1"
    assert compile_context.database_name is None
    assert dict(compile_context.variables) == {"env": "prod"}
    assert execute_context.connections is connections
    assert execute_context.package_deployer is package_deployer
    assert execute_context.directory_access is directory_access
    assert execute_context.cancellation is token
    assert execute_context.logger is logger
    assert logger.messages == ["Starting deployment to SRV1.", "Deployment completed."]


def test_default_package_deployer_is_sqlpackage(connections):
    orchestrator = Orchestrator(connections)

    assert isinstance(orchestrator.package_deployer, SqlPackageDeployer)
    assert orchestrator.directory_access is None


def test_deploy_end_to_end_against_fake_server(connections, sql_server, package_deployer):
    orchestrator = Orchestrator(connections, package_deployer=package_deployer, logger=FakeLogger())
    root = Instance(name=E("SRV1"), databases=(Database(name=E("{env}Orders")),))

    report = orchestrator.deploy(root, variables={"env": "Test"})

    assert [result.status for result in report.results] == [StepStatus.DONE]
    assert "TestOrders" in sql_server.databases


def test_deploy_propagates_cancellation(connections, sql_server, package_deployer):
    token = CancellationToken()
    token.cancel()
    orchestrator = Orchestrator(connections, package_deployer=package_deployer, logger=FakeLogger())

    with pytest.raises(ExecutionCancelledError):
        orchestrator.deploy(Database(name=E("Orders")), instance_name="SRV1", cancellation=token)

    assert sql_server.mutations == []
