"""
CLI utilities for the global store
"""

import json
import logging
from typing import Any, Dict, List

import click
from tabulate import tabulate

from .actions import Action
from .config import GlobalStoreConfig, configure_logging
from .coordinator import GlobalStore
from .registry import ALLOW_ALL, PLATFORM


def platform_reducer(state: Dict[str, Any], action: Action) -> Dict[str, Any]:
    state = state if state is not None else {"theme": "light"}
    if action.type == "SET_THEME":
        return {**state, "theme": action.payload}
    return state


def checkout_reducer(state: Dict[str, Any], action: Action) -> Dict[str, Any]:
    state = state if state is not None else {"items": [], "theme": "light"}
    if action.type == "ADD_ITEM":
        return {**state, "items": state["items"] + [action.payload]}
    if action.type == "RESET_CART":
        return {**state, "items": []}
    if action.type == "SET_THEME":
        return {**state, "theme": action.payload}
    return state


DEMO_STEPS = [
    ("local", "Checkout", {"type": "ADD_ITEM", "payload": "book"}),
    ("global", "Checkout", {"type": "SET_THEME", "payload": "dark"}),
    ("global", "Checkout", {"type": "RESET_CART"}),
    ("global", PLATFORM, {"type": "RESET_CART"}),
]


@click.group()
@click.option('--log-level', default=None, help='Log level for the globalstore logger namespace')
def main(log_level: str):
    """Global store CLI utilities"""
    configure_logging(log_level or GlobalStoreConfig.load().log_level)


@main.command()
@click.option('--debug', is_flag=True, help='Enable debug mode (console logger, action logging)')
@click.option('--output', '-o', help='Write the final global state to this JSON file')
def demo(debug: bool, output: str):
    """Run the Platform/Checkout dispatch scenario"""
    store = GlobalStore(debug_mode=debug)
    store.create_store(PLATFORM, platform_reducer, global_actions=["SET_THEME"])
    store.create_store("Checkout", checkout_reducer, global_actions=[ALLOW_ALL])

    notifications: List[List[Any]] = []
    store.subscribe_to_global_state(
        "cli",
        lambda state: notifications.append([len(notifications) + 1, json.dumps(state, sort_keys=True)])
    )

    steps = []
    for scope, source, action in DEMO_STEPS:
        if scope == "local":
            store.dispatch_local_action(source, action)
        else:
            store.dispatch_global_action(source, action)
        steps.append([scope, source, action["type"], json.dumps(store.get_global_state(), sort_keys=True)])

    click.echo(tabulate(
        [[name, ", ".join(actions) or "-"] for name, actions in store.registered_tenants()],
        headers=['Tenant', 'Global actions'], tablefmt='grid'
    ))
    click.echo(tabulate(steps, headers=['Scope', 'Source', 'Action', 'Global state'], tablefmt='grid'))
    click.echo(tabulate(notifications, headers=['#', 'Global listener state'], tablefmt='grid'))

    global_state = store.get_global_state()
    if output:
        with open(output, 'w') as f:
            json.dump(global_state, f, indent=2)
        click.echo(f"Global state saved to: {output}")
    else:
        click.echo(json.dumps(global_state, indent=2, sort_keys=True))


@main.command()
@click.option('--config-file', default=None, help='JSON config file to resolve')
def config(config_file: str):
    """Print resolved configuration"""
    resolved = GlobalStoreConfig.load(config_file)
    click.echo(tabulate(sorted(resolved.to_dict().items()), headers=['Setting', 'Value'], tablefmt='grid'))
    logging.getLogger(__name__).debug(f"Resolved config: {resolved}")


if __name__ == '__main__':
    main()
