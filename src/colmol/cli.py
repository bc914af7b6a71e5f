"""
Command-line interface for colmol.

Provides the `colmol` command with subcommands for inspecting structure
files, finding contacts and computing helix and spline geometry.
"""

import json
import logging
import sys

import click

from colmol import __version__


def _fail(ctx, e: Exception):
    click.echo(f"Error: {e}", err=True)
    if ctx.obj.get("verbose"):
        import traceback

        traceback.print_exc()
    sys.exit(1)


def _session(ctx, **kwargs):
    from colmol.colmol import Session

    return Session(verbose=ctx.obj.get("verbose", False), **kwargs)


@click.group()
@click.version_option(__version__, prog_name="colmol")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
@click.option("--log-file", type=click.Path(), help="Append log records to this file")
@click.pass_context
def main(ctx, verbose, log_file):
    """
    colmol: columnar molecular structures

    Example usage:

        colmol info 1crn.pdb

        colmol contacts --polar 1crn.pdb

        colmol helices --json 1crn.pdb
    """
    from colmol.logging_config import setup_logging

    setup_logging(logging.DEBUG if verbose else logging.WARNING, log_file)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@main.command()
@click.argument("structure_file", type=click.Path(exists=True))
@click.option("-s", "--selection", default="", help="Selection string")
@click.pass_context
def info(ctx, structure_file, selection):
    """Print counts, sequences and the bounding box of a structure."""
    try:
        session = _session(ctx)
        structure = session.load(structure_file)
        target = structure.get_view(selection) if selection else structure

        click.echo(f"Name: {structure.name}")
        click.echo(f"  Models: {structure.model_count}")
        click.echo(f"  Chains: {structure.chain_count}")
        click.echo(f"  Residues: {structure.residue_count}")
        click.echo(f"  Atoms: {target.atom_count}")
        click.echo(f"  Bonds: {target.bond_count}")

        for polymer in session.polymers(target):
            click.echo(f"  {polymer.qualified_name()}: {polymer.get_sequence()}")

        if target.atom_count:
            bb_min, bb_max = target.get_bounding_box()
            center = target.atom_center()
            click.echo(f"  Bounding box: {_fmt(bb_min)} .. {_fmt(bb_max)}")
            click.echo(f"  Center: {_fmt(center)}")
    except Exception as e:
        _fail(ctx, e)


def _fmt(v) -> str:
    return "(" + ", ".join(f"{float(x):.3f}" for x in v) + ")"


@main.command()
@click.argument("structure_file", type=click.Path(exists=True))
@click.option("--sele1", default=None, help="Probe selection")
@click.option("--sele2", default=None, help="Target selection")
@click.option("-d", "--max-distance", type=float, default=None, help="Distance bound (A)")
@click.option("--min-distance", type=float, default=None, help="Lower distance bound (A)")
@click.option("-p", "--polar", is_flag=True, help="Polar contacts with angle test")
@click.option("-b", "--backbone", is_flag=True, help="Backbone N-H...O only (with --polar)")
@click.option("-a", "--all-pairs", is_flag=True, help="Also list pairs rejected by the angle test")
@click.option("-w", "--worker", is_flag=True, help="Run the search in a worker process")
@click.option("--json", "as_json", is_flag=True, help="Print JSON")
@click.pass_context
def contacts(ctx, structure_file, sele1, sele2, max_distance, min_distance, polar, backbone,
             all_pairs, worker, as_json):
    """List atom pairs in contact."""
    try:
        session = _session(ctx)
        structure = session.load(structure_file)

        if worker:
            from colmol.io.worker import contacts_in_worker

            mode = ("polar_backbone" if backbone else "polar") if polar else "contact"
            result = contacts_in_worker(
                structure, mode, sele1, sele2,
                max_distance=max_distance or session.config.contact_max_distance,
                min_distance=min_distance,
                max_angle=session.config.contact_max_angle,
            )
        else:
            result = session.contacts(
                structure, sele1, sele2, max_distance=max_distance,
                min_distance=min_distance, polar=polar, backbone_only=backbone,
            )

        accepted = set(result.bond_set)

        ap1 = structure.get_atom_proxy()
        ap2 = structure.get_atom_proxy()
        rows = []
        for k, (i, j) in enumerate(result.pairs()):
            if not all_pairs and k not in accepted:
                continue
            ap1.index = i
            ap2.index = j
            rows.append({
                "atom1": ap1.qualified_name(),
                "atom2": ap2.qualified_name(),
                "distance": round(ap1.distance_to(ap2), 3),
                "accepted": k in accepted,
            })

        if as_json:
            click.echo(json.dumps(rows, indent=2))
            return

        for row in rows:
            flag = "" if row["accepted"] else "  (rejected)"
            click.echo(f"{row['atom1']}  {row['atom2']}  {row['distance']:.3f}{flag}")
        click.echo(f"{len(rows)} pairs")
    except Exception as e:
        _fail(ctx, e)


@main.command()
@click.argument("structure_file", type=click.Path(exists=True))
@click.option("-s", "--selection", default="", help="Selection string")
@click.option("--local-angle", type=float, default=30.0, help="Bending split threshold (deg)")
@click.option("--center-dist", type=float, default=2.5, help="Center distance split threshold (A)")
@click.option("--ss-border", is_flag=True, help="Also split at secondary structure changes")
@click.option("--min-distance", type=float, default=12.0, help="Crossing distance bound (A)")
@click.option("--json", "as_json", is_flag=True, help="Print JSON")
@click.pass_context
def helices(ctx, structure_file, selection, local_angle, center_dist, ss_border, min_distance, as_json):
    """Find straight helix segments and their crossings."""
    try:
        from colmol.backbone.helix import HelixCrossing
        from colmol.io.serialization import to_jsonable

        session = _session(ctx)
        structure = session.load(structure_file)

        found = session.helices(
            structure, selection or None,
            local_angle=local_angle, center_dist=center_dist, ss_border=ss_border,
        )
        crossing = HelixCrossing(found).get_crossing(min_distance)

        if as_json:
            data = {
                "helices": [
                    {
                        "label": label,
                        "begin": h.begin,
                        "end": h.end,
                        "center": h.center,
                        "length": h.length,
                        "residue_offset": h.residue_offset,
                        "residue_count": h.residue_count,
                    }
                    for label, h in zip(crossing["helix_label"], found)
                ],
                "crossings": crossing["info"],
            }
            click.echo(json.dumps(to_jsonable(data), indent=2))
            return

        rp1 = structure.get_residue_proxy()
        rp2 = structure.get_residue_proxy()
        for label, h in zip(crossing["helix_label"], found):
            rp1.index = h.residue_offset
            rp2.index = h.residue_offset + h.residue_count - 1
            click.echo(
                f"{label}: {rp1.qualified_name()} - {rp2.qualified_name()}  "
                f"length {h.length:.2f}  center {_fmt(h.center)}"
            )
        for c in crossing["info"]:
            click.echo(
                f"H{c['helix1']} x H{c['helix2']}: angle {c['angle']:.1f}  "
                f"distance {c['distance']:.2f}  overlap {c['overlap']:.2f}"
            )
    except Exception as e:
        _fail(ctx, e)


@main.command()
@click.argument("structure_file", type=click.Path(exists=True))
@click.option("-s", "--selection", default="", help="Selection string")
@click.option("-m", "--subdiv", type=int, default=None, help="Samples per residue")
@click.option("--arrows", is_flag=True, help="Arrow heads in the size profile")
@click.option("-O", "--output", type=click.Path(), help="Write JSON here instead of stdout")
@click.pass_context
def spline(ctx, structure_file, selection, subdiv, arrows, output):
    """Sample backbone splines (position and frame) as JSON."""
    try:
        from colmol.io.serialization import to_jsonable

        session = _session(ctx)
        structure = session.load(structure_file)

        data = []
        for item in session.splines(structure, selection or None, m=subdiv, arrows=arrows):
            polymer = item.pop("polymer")
            item["polymer"] = polymer.qualified_name()
            data.append(item)

        text = json.dumps(to_jsonable(data))
        if output:
            with open(output, "w", encoding="utf-8") as handle:
                handle.write(text)
            if ctx.obj.get("verbose"):
                click.echo(f"Wrote {len(data)} splines to {output}")
        else:
            click.echo(text)
    except Exception as e:
        _fail(ctx, e)


if __name__ == "__main__":
    main()
