import asyncio
import json
import shutil
from pathlib import Path

from typer.testing import CliRunner

from hotwire.cli.main import app
from hotwire.gateway.local import LocalClient
from hotwire.runtime.controller import RuntimeController

runner = CliRunner()
EXAMPLES_DIR = Path(__file__).parent.parent / "examples"


def _copy_examples(tmp_path: Path) -> Path:
    # keep the registration cache out of the examples directory
    target = tmp_path / "project"
    shutil.copytree(EXAMPLES_DIR, target)
    return target


def test_e2e_examples_validate():
    result = runner.invoke(app, ["validate", "--root", str(EXAMPLES_DIR), "--format", "json"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout[result.stdout.index("{"):])
    assert payload["summary"]["commands"] == 2
    assert payload["summary"]["events"] == 1
    assert payload["summary"]["errors"] == 0


def test_e2e_examples_runtime_answers_commands(tmp_path):
    project = _copy_examples(tmp_path)
    clients = []

    def factory():
        client = LocalClient()
        clients.append(client)
        return client

    controller = RuntimeController(project, client_factory=factory)

    async def exercise():
        while not clients or not clients[0].logged_in:
            await asyncio.sleep(0.01)
        ping = await clients[0].dispatch_command("ping")
        greetings = await clients[0].dispatch_command("greetings")
        return ping, greetings

    async def scenario():
        task = asyncio.ensure_future(exercise())
        await controller.run(until=task)
        return task.result()

    ping, greetings = asyncio.run(scenario())

    assert ping.replies[0].content == "pong"
    assert greetings.replies[0].content == "Greeted 1 time(s)."
    assert greetings.replies[0].ephemeral is True
    assert len(clients[0].registered_commands) == 1
    assert (project / ".cache" / "commands.hash").exists()
