#
# Copyright (c) 2023 Mikkel Schubert <MikkelSch@gmail.com>
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.
#
from __future__ import annotations

from typing import Iterable

from rnavc.common.command import (
    AuxiliaryFile,
    Command,
    CommandFileTypes,
    InputFile,
    OptionsType,
    OutputFile,
)
from rnavc.common.system import Resources
from rnavc.context import SampleContext
from rnavc.stage import Stage

# Standard hard filters for RNA-seq variants: (expression, filter name)
HARD_FILTERS = (
    ("QD < 2.0", "QD2"),
    ("FS > 60.0", "FS60"),
    ("MQ < 40.0", "MQ40"),
    ("MQRankSum < -12.5", "MQRankSum-12.5"),
    ("ReadPosRankSum < -8.0", "ReadPosRankSum-8"),
)


def gatk_command(
    tool: str,
    resources: Resources,
    executable: str = "gatk",
    options: OptionsType | None = None,
    extra_files: Iterable[CommandFileTypes] = (),
) -> Command:
    """Builds a GATK 4.x command, limiting the JVM to the given resources:

        gatk --java-options "-Xmx{memory}G -XX:ParallelGCThreads={threads}" TOOL ...
    """
    command = Command([executable], extra_files=extra_files)
    command.append("--java-options", " ".join(resources.java_options))
    command.append(tool)
    if options:
        command.append_options(options)

    return command


def index_known_sites_stage(
    known_sites: str,
    resources: Resources,
    executable: str = "gatk",
) -> Stage:
    """Indexes the known sites, unless an index already exists."""
    return Stage(
        name="IndexFeatureFile (known sites)",
        description="Indexing known sites",
        commands=gatk_command(
            tool="IndexFeatureFile",
            resources=resources,
            executable=executable,
            options={"-I": AuxiliaryFile(known_sites)},
            extra_files=[OutputFile(known_sites + ".idx")],
        ),
    )


def add_read_groups_stage(
    context: SampleContext,
    in_bam: str,
    resources: Resources,
    executable: str = "gatk",
) -> Stage:
    out_bam = context.path(".rg.bam")
    sample = context.sample_id

    return Stage(
        name="AddOrReplaceReadGroups",
        description="Adding read groups",
        commands=gatk_command(
            tool="AddOrReplaceReadGroups",
            resources=resources,
            executable=executable,
            options={
                "-I": InputFile(in_bam),
                "-O": OutputFile(out_bam),
                "-RGID": sample,
                "-RGLB": sample,
                "-RGPL": "UNKNOWN",
                "-RGPU": sample,
                "-RGSM": sample,
            },
        ),
        intermediate=[out_bam],
    )


def mark_duplicates_stage(
    context: SampleContext,
    in_bam: str,
    resources: Resources,
    executable: str = "gatk",
) -> Stage:
    out_bam = context.path(".markdup.bam")
    out_metrics = context.path(".markdup.metrics.txt")

    return Stage(
        name="MarkDuplicates",
        description="Marking duplicates",
        commands=gatk_command(
            tool="MarkDuplicates",
            resources=resources,
            executable=executable,
            options={
                "-I": InputFile(in_bam),
                "-O": OutputFile(out_bam),
                "-M": OutputFile(out_metrics),
            },
        ),
        # The metrics are not needed downstream, so only the BAM signals completion
        outputs=[out_bam],
        intermediate=[out_bam, out_metrics],
    )


def split_n_cigar_reads_stage(
    context: SampleContext,
    reference: str,
    resources: Resources,
    executable: str = "gatk",
) -> Stage:
    in_bam = context.path(".markdup.bam")
    out_bam = context.path(".split.bam")

    return Stage(
        name="SplitNCigarReads",
        description="Split'N'Trim and reassign mapping qualities",
        commands=gatk_command(
            tool="SplitNCigarReads",
            resources=resources,
            executable=executable,
            options={
                "-R": AuxiliaryFile(reference),
                "-I": InputFile(in_bam),
                "-O": OutputFile(out_bam),
            },
        ),
        outputs=[out_bam],
        intermediate=[out_bam, context.path(".split.bai")],
    )


def recalibration_stage(
    context: SampleContext,
    reference: str,
    known_sites: str,
    resources: Resources,
    executable: str = "gatk",
) -> Stage:
    """BaseRecalibrator followed by ApplyBQSR; both are re-run unless the
    recalibrated BAM exists."""
    in_bam = context.path(".split.bam")
    out_table = context.path(".recal_data.table")
    out_bam = context.path(".recal.bam")

    base_recalibrator = gatk_command(
        tool="BaseRecalibrator",
        resources=resources,
        executable=executable,
        options={
            "-R": AuxiliaryFile(reference),
            "-I": InputFile(in_bam),
            "--known-sites": AuxiliaryFile(known_sites),
            "-O": OutputFile(out_table),
        },
    )

    apply_bqsr = gatk_command(
        tool="ApplyBQSR",
        resources=resources,
        executable=executable,
        options={
            "-R": AuxiliaryFile(reference),
            "-I": InputFile(in_bam),
            "--bqsr-recal-file": InputFile(out_table),
            "-O": OutputFile(out_bam),
        },
    )

    return Stage(
        name="BaseRecalibrator and ApplyBQSR",
        description="Base quality score recalibration",
        commands=[base_recalibrator, apply_bqsr],
        outputs=[out_bam],
        intermediate=[out_table],
    )


def haplotype_caller_stage(
    context: SampleContext,
    reference: str,
    resources: Resources,
    executable: str = "gatk",
) -> Stage:
    return Stage(
        name="HaplotypeCaller",
        description="Variant calling",
        commands=gatk_command(
            tool="HaplotypeCaller",
            resources=resources,
            executable=executable,
            options={
                "-R": AuxiliaryFile(reference),
                "-I": InputFile(context.path(".recal.bam")),
                "-O": OutputFile(context.path(".raw.vcf")),
            },
        ),
        outputs=[context.path(".raw.vcf")],
    )


def variant_filtration_stage(
    context: SampleContext,
    reference: str,
    resources: Resources,
    executable: str = "gatk",
    filters: Iterable[tuple[str, str]] = HARD_FILTERS,
) -> Stage:
    command = gatk_command(
        tool="VariantFiltration",
        resources=resources,
        executable=executable,
        options={
            "-R": AuxiliaryFile(reference),
            "-V": InputFile(context.path(".raw.vcf")),
            "-O": OutputFile(context.path(".filtered.vcf")),
        },
    )

    for expression, name in filters:
        command.append("--filter-expression", expression, "--filter-name", name)

    return Stage(
        name="VariantFiltration",
        description="Variant filtering",
        commands=command,
        outputs=[context.path(".filtered.vcf")],
    )


def index_vcf_stage(
    context: SampleContext,
    resources: Resources,
    executable: str = "gatk",
) -> Stage:
    in_vcf = context.path(".filtered.vcf")

    return Stage(
        name="IndexFeatureFile",
        description="Indexing the output VCF file",
        commands=gatk_command(
            tool="IndexFeatureFile",
            resources=resources,
            executable=executable,
            options={"-I": InputFile(in_vcf)},
            extra_files=[OutputFile(in_vcf + ".idx")],
        ),
    )


def build_variant_calling_stages(
    context: SampleContext,
    reference: str,
    bam: str,
    known_sites: str,
    resources: Resources,
    *,
    executable: str = "gatk",
    add_read_groups: bool = False,
) -> list[Stage]:
    """Returns the stages of the RNA-seq variant calling pipeline, in the order in
    which they must be run. The index of the filtered VCF, which is written by
    the last stage, marks the completion of the pipeline for a sample.

    If 'add_read_groups' is set, read groups named after the sample are added to
    the input BAM before duplicates are marked.
    """
    stages: list[Stage] = []
    if add_read_groups:
        stage = add_read_groups_stage(context, bam, resources, executable)
        stages.append(stage)
        (bam,) = stage.outputs

    stages.append(mark_duplicates_stage(context, bam, resources, executable))
    stages.append(split_n_cigar_reads_stage(context, reference, resources, executable))
    stages.append(index_known_sites_stage(known_sites, resources, executable))
    stages.append(
        recalibration_stage(context, reference, known_sites, resources, executable)
    )
    stages.append(haplotype_caller_stage(context, reference, resources, executable))
    stages.append(variant_filtration_stage(context, reference, resources, executable))
    stages.append(index_vcf_stage(context, resources, executable))

    return stages
