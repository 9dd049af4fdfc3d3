"""Groovy init scripts injected into Gradle builds.

Both scripts report back over the build's own stdout: each payload is a
single line made of a marker followed by one JSON document, so the runner
can pick them out of ordinary build output without a side channel.

- ``TEST_EVENTS_SCRIPT`` attaches a test and test-output listener to every
  ``Test`` task and prints one line per start, finish and output chunk.
- ``PROJECT_INFO_SCRIPT`` registers a ``mcpProjectInfo`` task on the root
  project that prints build structure, tasks, environment and details.
"""

from pathlib import Path

TEST_EVENT_MARKER = "##gradle-mcp-event## "
PROJECT_INFO_MARKER = "##gradle-mcp-project## "
PROJECT_INFO_TASK = "mcpProjectInfo"

TEST_EVENTS_SCRIPT = """\
import groovy.json.JsonOutput

def mcpMarker = '%(marker)s'

def mcpDescriptorId = { task, descriptor ->
    if (descriptor == null) {
        return null
    }
    def id = descriptor.metaClass.hasProperty(descriptor, 'id') ? descriptor.id : System.identityHashCode(descriptor)
    return task.path + '#' + id
}

def mcpFailures
mcpFailures = { Throwable error ->
    if (error == null) {
        return []
    }
    def trace = new StringWriter()
    error.printStackTrace(new PrintWriter(trace))
    return [[
        message: error.message,
        description: trace.toString(),
        causes: error.cause != null && error.cause != error ? mcpFailures(error.cause) : []
    ]]
}

def mcpEmit = { Map payload ->
    synchronized (mcpMarker) {
        println(mcpMarker + JsonOutput.toJson(payload))
    }
}

allprojects {
    tasks.withType(Test).configureEach { testTask ->
        def started = { TestDescriptor descriptor ->
            mcpEmit([
                type: 'start',
                id: mcpDescriptorId(testTask, descriptor),
                parent: mcpDescriptorId(testTask, descriptor.parent),
                name: descriptor.metaClass.hasProperty(descriptor, 'displayName') ? descriptor.displayName : descriptor.name,
                composite: descriptor.composite,
                className: descriptor.className,
                methodName: descriptor.composite ? null : descriptor.name
            ])
        }
        def finished = { TestDescriptor descriptor, TestResult result ->
            mcpEmit([
                type: 'finish',
                id: mcpDescriptorId(testTask, descriptor),
                result: result.resultType.name(),
                failures: result.exceptions.collectMany { mcpFailures(it) }
            ])
        }
        testTask.addTestListener(new TestListener() {
            void beforeSuite(TestDescriptor suite) { started(suite) }
            void afterSuite(TestDescriptor suite, TestResult result) { finished(suite, result) }
            void beforeTest(TestDescriptor test) { started(test) }
            void afterTest(TestDescriptor test, TestResult result) { finished(test, result) }
        })
        testTask.addTestOutputListener(new TestOutputListener() {
            void onOutput(TestDescriptor descriptor, TestOutputEvent event) {
                mcpEmit([
                    type: 'output',
                    id: mcpDescriptorId(testTask, descriptor),
                    stream: event.destination == TestOutputEvent.Destination.StdErr ? 'stderr' : 'stdout',
                    text: event.message
                ])
            }
        })
    }
}
""" % {"marker": TEST_EVENT_MARKER}

PROJECT_INFO_SCRIPT = """\
import groovy.json.JsonOutput
import java.lang.management.ManagementFactory

rootProject {
    tasks.register('%(task)s') {
        doLast {
            def root = project.rootProject
            def info = [
                buildStructure: [
                    root_project_name: root.name,
                    root_project_path_gradle: root.path,
                    build_identifier_path: root.rootDir.absolutePath,
                    subprojects: root.allprojects.collect { [name: it.name, path: it.path, is_root: it.path == ':'] }
                ],
                tasks: root.tasks.findAll { it.name != '%(task)s' }.collect {
                    [name: it.name, path: it.path, description: it.description]
                },
                environment: [
                    gradle_version: gradle.gradleVersion,
                    java_home: System.getProperty('java.home'),
                    jvm_arguments: ManagementFactory.runtimeMXBean.inputArguments
                ],
                projectDetails: [
                    name: root.name,
                    path: root.path,
                    description: root.description,
                    build_script_path: root.buildFile?.absolutePath
                ]
            ]
            println('%(marker)s' + JsonOutput.toJson(info))
        }
    }
}
""" % {"task": PROJECT_INFO_TASK, "marker": PROJECT_INFO_MARKER}


def write_init_script(directory: Path, name: str, content: str) -> Path:
    """Write an init script into ``directory`` and return its path."""
    path = directory / name
    path.write_text(content, encoding="utf-8")
    return path
