"""Extend vs compose on two small networks.

`extend` merges the binding and unbinding networks into one flat node;
`compose` keeps them as namespaced sub-networks of a common parent.

Run:
    python examples/extend_binding.py
"""

from __future__ import annotations

from crn_composer import ReactionNode, binding_network, extend, flatten, format_flat, unbinding_network


def main() -> None:
    merged = extend(binding_network(), unbinding_network())
    print("extend:")
    print(format_flat(merged))

    parent = ReactionNode("both").compose(binding_network(), unbinding_network())
    print("compose + flatten:")
    print(format_flat(flatten(parent)))


if __name__ == "__main__":
    main()
