#!/usr/bin/env python3
"""
didflow - Issue and Verify Example

This example drives three cloud agents through the whole flow:
1. Give the issuer (Acme) a published DID and the holder (Bob) a DID
2. Connect Acme and Bob, issue Bob a credential
3. Connect Faber and Bob, have Faber verify Bob's proof
4. Run it again: every end state already exists, so nothing new happens

Configure the agents with ACME_AGENT_URL, BOB_AGENT_URL, FABER_AGENT_URL
(and *_AUTH_KEY where the agents require one), then run:

    python examples/issue_and_verify.py
"""

import sys

from didflow import DidFlowError, FlowContext, FlowDriver, configure_logging
from didflow.memory import ISSUED_CREDENTIAL, PRESENTATION


def main() -> int:
    """Run the issue-and-verify example."""
    configure_logging()
    print("=== didflow Issue and Verify Example ===\n")

    try:
        context = FlowContext.from_env()
    except DidFlowError as e:
        print(f"Configuration error: {e.message}")
        return 1

    try:
        driver = FlowDriver(context)

        # Step 1: Provision DIDs and a credential schema
        print("1. Provisioning DIDs and schema...")
        driver.prepare(create_schema=True)
        print("   Issuer DID published, holder DID created")

        # Steps 2-3: Reach the end state
        print("\n2. Running the scenario...")
        result = driver.run_scenario()
        if not result.ok:
            print(f"   Failed in '{result.failed_group}': {result.error}")
            return 1
        for group, seconds in result.durations.items():
            print(f"   {group}: {seconds:.2f}s")

        holder, verifier = context.cast.holder, context.cast.verifier
        credential = holder.memory.get(ISSUED_CREDENTIAL)
        presentation = verifier.memory.get(PRESENTATION)
        print(f"   {holder.name} holds credential {credential.thid}")
        print(f"   {verifier.name} accepted presentation {presentation.thid}")

        # Step 4: Everything is reused
        print("\n3. Running the scenario again...")
        again = driver.run_scenario()
        if not again.ok:
            print(f"   Failed in '{again.failed_group}': {again.error}")
            return 1
        print(f"   Reused presentation {context.cast.verifier.memory.get(PRESENTATION).thid}")
    finally:
        context.close()

    print("\n=== Example Complete ===")
    return 0


if __name__ == "__main__":
    sys.exit(main())
