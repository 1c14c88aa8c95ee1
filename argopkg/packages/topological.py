from collections import defaultdict, OrderedDict

from argopkg.errors import CycleDetected, UnresolvedReferenceError


def sort(graph):
    """Return graph items so that every item follows its dependencies.

    *graph* maps a vertex name to ``{"item": ..., "deps": [...]}``.  Vertices
    are visited in insertion order, and dependencies in listing order.
    """
    adj = defaultdict(OrderedDict)

    for item_name, item in graph.items():
        for dep in item["deps"]:
            if dep in graph:
                adj[item_name][dep] = True
            else:
                raise UnresolvedReferenceError(
                    'reference to an undefined item {} in {}'.format(
                        dep, item_name))

    visiting = []
    visited = set()
    sorted = []

    def visit(item):
        if item in visiting:
            cycle = visiting[visiting.index(item):] + [item]
            raise CycleDetected(
                "dependency cycle: {}".format(" -> ".join(cycle)))
        if item not in visited:
            visiting.append(item)
            for n in adj[item]:
                visit(n)
            sorted.append(item)
            visiting.pop()
            visited.add(item)

    for item in graph:
        visit(item)

    return [graph[item]["item"] for item in sorted]
