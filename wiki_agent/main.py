"""
Command-line interface for the Wiki Agent.
"""

import sys
import json
import argparse
from typing import List, Optional

import yaml

from .config import load_config, validate_config
from .logger import setup_logging
from .output import format_envelope, save_envelope
from .profiles import load_site_profile
from .agent import WikiAgent

def read_queries(path: str) -> List[str]:
    """
    Read queries from a YAML file holding either a list of queries or a
    mapping with a ``queries`` list.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if isinstance(data, dict):
        data = data.get("queries")
    if not isinstance(data, list) or not all(isinstance(q, str) for q in data):
        raise ValueError("Input file must contain a list of query strings")
    return [q for q in data if q.strip()]

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the command-line interface."""
    parser = argparse.ArgumentParser(description="Answer questions from a wiki with Claude")
    parser.add_argument("query", nargs="?", help="Question to answer")
    parser.add_argument("--input", "-i", type=str, help="YAML file with a list of queries")
    parser.add_argument("--config", "-c", type=str, help="Path to config.json file")
    parser.add_argument("--site", type=str, help="Site profile to use (domain name)")
    parser.add_argument("--max-results", "-s", type=int, help="Maximum number of search results")
    parser.add_argument("--timeout", "-t", type=float, help="Per-request timeout in seconds")
    parser.add_argument("--output", "-o", type=str, help="Directory to save results in")
    parser.add_argument("--json", action="store_true", help="Print result envelopes as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    args = parser.parse_args(argv)

    setup_logging("DEBUG" if args.verbose else "WARNING", json_format=args.json)

    # Load configuration
    config = load_config(args.config)
    if args.site:
        config["site"] = args.site
    if args.max_results is not None:
        config["max_results"] = args.max_results
    if args.timeout is not None:
        config["timeout"] = args.timeout

    if not validate_config(config):
        print("Error: invalid configuration (is ANTHROPIC_API_KEY set?)", file=sys.stderr)
        return 1

    # Collect queries
    if args.input:
        try:
            queries = read_queries(args.input)
        except (OSError, ValueError, yaml.YAMLError) as e:
            print(f"Error reading input file: {e}", file=sys.stderr)
            return 1
    elif args.query:
        queries = [args.query]
    else:
        try:
            queries = [input("Enter your question: ").strip()]
        except EOFError:
            queries = []

    queries = [q for q in queries if q]
    if not queries:
        print("Error: no query given", file=sys.stderr)
        return 1

    try:
        site = load_site_profile(config["site"])
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    agent = WikiAgent(
        anthropic_api_key=config.get("anthropic_api_key"),
        site=site,
        base_url=config.get("base_url"),
        search_endpoint=config.get("search_endpoint"),
        max_results=config["max_results"],
        timeout=config["timeout"],
        **({"model": config["model"]} if config.get("model") else {}),
    )

    envelopes = []
    for i, query in enumerate(queries):
        envelope = agent.process_query(query)
        envelopes.append(envelope)

        if args.output:
            paths = save_envelope(envelope, args.output, index=i + 1)
            print(f"Saved result to {paths[0]}", file=sys.stderr)

        if not args.json:
            print(format_envelope(envelope))
            print()

    if args.json:
        payload = [e.to_dict() for e in envelopes]
        print(json.dumps(payload[0] if len(payload) == 1 else payload, indent=2, ensure_ascii=False))

    return 0

if __name__ == "__main__":
    sys.exit(main())
