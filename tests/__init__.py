"""Test package for the gumball study.

Core modules (sampling, trial generation, catch probes, token field, session
state machine, persistence) are tested directly with an injected fake clock.
The pygame shell is smoke-tested headlessly using SDL's dummy drivers. To run
these tests, execute ``pytest`` from the project root.
"""
