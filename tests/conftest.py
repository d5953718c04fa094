import pytest
from loguru import logger

from seminal.ir_parser.ir_model import Module

SCANF_BRANCH_IR = r'''
; ModuleID = 'sample.c'
source_filename = "sample.c"

@.str = private unnamed_addr constant [3 x i8] c"%d\00", align 1
@.str.1 = private unnamed_addr constant [9 x i8] c"positive\00", align 1

define dso_local i32 @main() #0 !dbg !6 {
entry:
  %retval = alloca i32, align 4
  %x = alloca i32, align 4
  store i32 0, ptr %retval, align 4
  call void @prompt(), !dbg !11
  %call = call i32 (ptr, ...) @scanf(ptr noundef @.str, ptr noundef %x), !dbg !12
  %0 = load i32, ptr %x, align 4, !dbg !13
  %cmp = icmp sgt i32 %0, 0, !dbg !14
  br i1 %cmp, label %if.then, label %if.end, !dbg !15

if.then:                                          ; preds = %entry
  %call1 = call i32 @puts(ptr noundef @.str.1), !dbg !16
  br label %if.end, !dbg !17

if.end:                                           ; preds = %if.then, %entry
  ret i32 0, !dbg !18
}

declare void @prompt() #1

declare i32 @scanf(ptr noundef, ...) #1

declare i32 @puts(ptr noundef) #1

attributes #0 = { noinline nounwind optnone "frame-pointer"="all" }
attributes #1 = { "frame-pointer"="all" }

!llvm.dbg.cu = !{!0}
!llvm.module.flags = !{!2, !3, !4}
!llvm.ident = !{!5}

!0 = distinct !DICompileUnit(language: DW_LANG_C11, file: !1, producer: "clang version 17.0.6", isOptimized: false, runtimeVersion: 0, emissionKind: FullDebug, splitDebugInlining: false, nameTableKind: None)
!1 = !DIFile(filename: "sample.c", directory: "/tmp/sample")
!2 = !{i32 7, !"Dwarf Version", i32 5}
!3 = !{i32 2, !"Debug Info Version", i32 3}
!4 = !{i32 1, !"wchar_size", i32 4}
!5 = !{!"clang version 17.0.6"}
!6 = distinct !DISubprogram(name: "main", scope: !1, file: !1, line: 3, type: !7, scopeLine: 3, spFlags: DISPFlagDefinition, unit: !0, retainedNodes: !10)
!7 = !DISubroutineType(types: !8)
!8 = !{!9}
!9 = !DIBasicType(name: "int", size: 32, encoding: DW_ATE_signed)
!10 = !{}
!11 = !DILocation(line: 4, column: 3, scope: !6)
!12 = !DILocation(line: 5, column: 3, scope: !6)
!13 = !DILocation(line: 6, column: 7, scope: !6)
!14 = !DILocation(line: 6, column: 9, scope: !6)
!15 = !DILocation(line: 6, column: 7, scope: !6)
!16 = !DILocation(line: 7, column: 5, scope: !6)
!17 = !DILocation(line: 8, column: 3, scope: !6)
!18 = !DILocation(line: 9, column: 3, scope: !6)
'''

NO_INPUT_IR = r'''
source_filename = "log.c"

define dso_local void @report(i32 noundef %y) {
entry:
  %y.addr = alloca i32, align 4
  store i32 %y, ptr %y.addr, align 4
  %0 = load i32, ptr %y.addr, align 4
  call void @log(i32 noundef %0)
  %tobool = icmp ne i32 %0, 0
  br i1 %tobool, label %yes, label %no

yes:                                              ; preds = %entry
  call void @log(i32 noundef 1)
  br label %no

no:                                               ; preds = %yes, %entry
  ret void
}

declare void @log(i32 noundef)
'''

CROSS_BLOCK_IR = r'''
source_filename = "split.c"

@.fmt = private unnamed_addr constant [3 x i8] c"%d\00", align 1

define dso_local i32 @split() !dbg !4 {
entry:
  %a = alloca i32, align 4
  %call = call i32 (ptr, ...) @scanf(ptr noundef @.fmt, ptr noundef %a), !dbg !8
  br label %check, !dbg !9

check:                                            ; preds = %entry
  %flag = icmp eq i32 1, 1
  br i1 %flag, label %done, label %done, !dbg !10

done:                                             ; preds = %check, %check
  ret i32 0
}

declare i32 @scanf(ptr noundef, ...)

!llvm.dbg.cu = !{!0}
!llvm.module.flags = !{!2, !3}

!0 = distinct !DICompileUnit(language: DW_LANG_C11, file: !1, producer: "clang version 17.0.6", isOptimized: false, runtimeVersion: 0, emissionKind: FullDebug)
!1 = !DIFile(filename: "split.c", directory: "/tmp/split")
!2 = !{i32 7, !"Dwarf Version", i32 5}
!3 = !{i32 2, !"Debug Info Version", i32 3}
!4 = distinct !DISubprogram(name: "split", scope: !1, file: !1, line: 1, type: !5, scopeLine: 1, spFlags: DISPFlagDefinition, unit: !0)
!5 = !DISubroutineType(types: !6)
!6 = !{!7}
!7 = !DIBasicType(name: "int", size: 32, encoding: DW_ATE_signed)
!8 = !DILocation(line: 3, column: 3, scope: !4)
!9 = !DILocation(line: 4, column: 3, scope: !4)
!10 = !DILocation(line: 6, column: 3, scope: !4)
'''


TWO_READERS_IR = r'''
@.fmt = private unnamed_addr constant [3 x i8] c"%d\00", align 1

define dso_local i32 @first() {
entry:
  %a = alloca i32, align 4
  %call = call i32 (ptr, ...) @scanf(ptr noundef @.fmt, ptr noundef %a)
  ret i32 0
}

define dso_local i32 @second() {
entry:
  %b = alloca i32, align 4
  %call = call i32 (ptr, ...) @scanf(ptr noundef @.fmt, ptr noundef %b)
  ret i32 0
}

declare i32 @scanf(ptr noundef, ...)
'''


@pytest.fixture
def log_messages():
    messages = []
    handler_id = logger.add(
        lambda message: messages.append(message.record["message"]),
        level="DEBUG",
        format="{message}",
    )
    yield messages
    logger.remove(handler_id)


def build_split_module(body_first=False):
    """
    entry: %x = alloca; call @scanf(@fmt, %x); br %body
    body:  call @log(); %v = load %x; %cmp = icmp %v; br %cmp

    With body_first the body block is filled before entry, so the users of
    %x are registered in the opposite order.
    """
    module = Module("built")
    scanf = module.add_global("scanf", kind="function")
    log = module.add_global("log", kind="function")
    fmt = module.add_global(".fmt")
    procedure = module.add_procedure("split", "i32")
    entry = procedure.add_block("entry")
    body = procedure.add_block("body")

    def fill_entry(x):
        entry.append("call", [scanf, fmt, x], name="call", line=3)
        entry.append("br", [body], line=4)

    def fill_body(x):
        body.append("call", [log], line=5)
        load = body.append("load", [x], name="v", line=6)
        cmp = body.append("icmp", [load], name="cmp", line=6)
        body.append("br", [cmp], line=6)

    x = entry.append("alloca", name="x", text="%x = alloca i32, align 4")
    if body_first:
        fill_body(x)
        fill_entry(x)
    else:
        fill_entry(x)
        fill_body(x)
    return module, procedure
