"""Default workflow templates."""

from .orchestrator import OrchestrationEngine
from .workflow import StepDefinition, WorkflowOptions

DEPLOY_CLOUDFLARE_APP = "deploy-cloudflare-app"
DEV_SETUP = "dev-setup"


def register_default_workflows(engine: OrchestrationEngine) -> list[str]:
    """Register the built-in workflow templates on an engine.

    Returns:
        Names of the registered workflows
    """
    engine.define_workflow(
        DEPLOY_CLOUDFLARE_APP,
        [
            StepDefinition(
                name="create-kv-namespace",
                provider="cloudflare",
                action="create",
                type="kv",
                parameters={"name": "app-config"},
            ),
            StepDefinition(
                name="deploy-worker",
                provider="cloudflare",
                action="deploy",
                type="worker",
                parameters={"script": "main.js"},
                condition="success",
            ),
            StepDefinition(
                name="create-github-issue",
                provider="github",
                action="create",
                type="issue",
                parameters={
                    "title": "Deployment completed",
                    "body": "Cloudflare app deployed successfully",
                },
            ),
        ],
        WorkflowOptions(
            description="Complete Cloudflare application deployment workflow",
            retry_on_failure=True,
        ),
    )

    engine.define_workflow(
        DEV_SETUP,
        [
            StepDefinition(
                name="create-github-branch",
                provider="github",
                action="create",
                type="branch",
                parameters={"name": "feature-dev"},
            ),
            StepDefinition(
                name="create-asana-task",
                provider="asana",
                action="create",
                type="task",
                parameters={"name": "Development setup", "project": "Engineering"},
            ),
        ],
        WorkflowOptions(
            description="Development environment setup workflow",
            parallel=True,
        ),
    )

    return [DEPLOY_CLOUDFLARE_APP, DEV_SETUP]
