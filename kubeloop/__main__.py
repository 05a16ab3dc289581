"""
CLI entry point, when used as a module: `python -m kubeloop`.

Useful for debugging in the IDEs (use the start-mode "Module", module "kubeloop").
"""
from kubeloop import cli

if __name__ == '__main__':
    cli.main()
