"""
Glue for the cukes example.

Run from this directory:
    scene-glue run features --glue steps
"""

from scene_glue import step, before_scenario, after_scenario, after_step


@before_scenario()
def start_basket(context, scenario):
    return {**context, "basket": 0, "log": []}


@after_step
def log_step(context):
    step_info = context.get("scene/step", {})
    return {**context, "log": context.get("log", []) + [step_info.get("pattern")]}


@after_scenario("@report")
def report(context, scenario):
    print(f"{scenario.name}: {scenario.status} after {len(context.get('log', []))} steps")
    return context


@step("I have {int} cukes")
def have_cukes(context, count):
    return {**context, "basket": count}


@step("I eat {int} cukes")
def eat_cukes(context, count):
    return {**context, "basket": context["basket"] - count}


@step("I should have {int} cukes left")
def cukes_left(context, expected):
    assert context["basket"] == expected, f"expected {expected}, got {context['basket']}"
    return context
