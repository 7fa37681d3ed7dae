import json

from pyimgscatter.reporting.environment import collect_environment


def test_collect_environment_is_json_friendly():
    env = collect_environment()

    assert {"python", "platform", "cpu_count", "packages"}.issubset(env.keys())
    assert env["packages"]["numpy"]
    assert set(env["packages"]) >= {"pyimgscatter", "numpy", "pillow", "opencv_python", "mpi4py"}
    json.dumps(env)
