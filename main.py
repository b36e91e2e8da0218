# main.py

'''
Terminal chat loop for the AgentX yield assistant.

Commands:
   - /reset   clear the conversation and inferred preferences
   - /history print the transcript so far
   - /context print what the assistant has inferred about you
   - /quit    leave (EOF works too)
'''

import argparse
import json
from pathlib import Path

from yield_agent import DialogueEngine, configure_logging, load_settings


def build_engine(args):
    settings = load_settings()
    if args.seed is not None:
        settings.seed = args.seed
    if args.catalog:
        settings.catalog_path = Path(args.catalog)
    configure_logging("DEBUG" if args.debug else settings.log_level)
    return DialogueEngine.from_settings(settings)


def run(engine, read=input):
    print(f"AgentX: {engine.greeting}")
    while True:
        try:
            raw = read("You: ")
        except EOFError:
            print()
            break
        text = raw.strip()
        if not text:
            continue
        if text == "/quit":
            break
        if text == "/reset":
            engine.reset()
            print(f"AgentX: {engine.greeting}")
            continue
        if text == "/history":
            print(engine.transcript())
            continue
        if text == "/context":
            print(json.dumps(engine.context, indent=2))
            continue
        print(f"AgentX: {engine.send_message(text)}")


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description="Chat with the AgentX yield assistant")
    parser.add_argument('--seed', type=int, default=None,
                        help="Seed for reply selection (reproducible sessions)")
    parser.add_argument('--catalog', type=str, default=None,
                        help="YAML file overriding the keyword replies and fallbacks")
    parser.add_argument('--debug', action='store_true',
                        help="Log which tier answered each message")
    args = parser.parse_args()
    run(build_engine(args))
